"""Multi-day availability calendar rendered from an ICS feed."""

__version__ = "0.2.0"
