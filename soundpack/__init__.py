"""Sound pack gate: signed preview/download links over tiered asset storage."""

__version__ = "1.0.0"
