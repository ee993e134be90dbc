"""Weighting applied by the composite aggregator."""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Dict, Mapping, Optional


@dataclass(frozen=True)
class RiskWeights:
    """Per-model weights plus the weight of the red-flag density term.

    Weights need not sum to one; ``normalized`` rescales them on demand.
    The dataclass is frozen so one instance can be shared by concurrent
    analyses.
    """

    beneish: float = 0.30
    altman: float = 0.25
    piotroski: float = 0.15
    fraud_triangle: float = 0.15
    benford: float = 0.05
    red_flags: float = 0.10

    def total(self) -> float:
        return sum(getattr(self, f.name) for f in fields(self))

    def normalized(self) -> "RiskWeights":
        total = self.total()
        if total <= 0:
            return self
        return RiskWeights(**{f.name: getattr(self, f.name) / total for f in fields(self)})

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_mapping(
        cls, values: Optional[Mapping[str, object]], base: Optional["RiskWeights"] = None
    ) -> "RiskWeights":
        """Overlay known keys from ``values`` onto ``base`` (defaults when omitted)."""
        base = base or cls()
        if not values:
            return base
        known = {f.name for f in fields(cls)}
        updates: Dict[str, float] = {}
        for key, value in values.items():
            if key not in known or value is None:
                continue
            try:
                updates[key] = float(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Invalid weight for {key!r}: {value!r}") from exc
        return replace(base, **updates)
