"""prdkit: decoder and extractor for PRD/PRS game asset containers."""

__version__ = "0.3.0"
