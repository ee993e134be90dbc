"""Chart rendering for report artifacts."""
from __future__ import annotations

import io
import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from fraud_analyzer.domain.models.results import BenfordResult

logger = logging.getLogger(__name__)


def _ensure_output_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def save_benford_chart(result: BenfordResult, output_dir: Path, name: str = "benford") -> Path:
    """Expected vs. observed digit frequencies as a grouped bar chart (PNG)."""
    chart_dir = Path(output_dir) / "charts"
    _ensure_output_dir(chart_dir)
    path = chart_dir / f"{name}_{result.digit_position}_digit.png"

    first_label = 1 if result.digit_position == "first" else 0
    labels = [str(first_label + i) for i in range(len(result.expected_distribution))]
    x = np.arange(len(labels))
    width = 0.4

    fig, ax = plt.subplots(figsize=(7, 3.5))
    ax.bar(x - width / 2, result.expected_distribution, width, label="Expected", color="#90a4ae")
    ax.bar(x + width / 2, result.actual_distribution, width, label="Observed", color="#ef6c00")
    ax.set_xticks(x)
    ax.set_xticklabels(labels)
    ax.set_xlabel(f"{result.digit_position.capitalize()} digit")
    ax.set_ylabel("Frequency")
    ax.set_title(f"Benford's Law ({result.conformity}, n={result.sample_size})")
    ax.legend()

    buf = io.BytesIO()
    fig.tight_layout()
    fig.savefig(buf, format="png")
    plt.close(fig)
    path.write_bytes(buf.getvalue())
    logger.info("Saved Benford chart to %s", path)
    return path
