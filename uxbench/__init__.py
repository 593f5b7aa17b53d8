"""UX Bench: turns classified interaction events into efficiency reports."""

__version__ = "0.1.0"
