"""Portfolio analytics for traditional, real estate and infrastructure holdings."""

__version__ = "1.0.0"
