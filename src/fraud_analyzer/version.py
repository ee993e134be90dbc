"""Package version reported in analysis results."""

ANALYZER_VERSION = "1.0.0"
