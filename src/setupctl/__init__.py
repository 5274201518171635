"""setupctl — first-run setup for managed FXServer instances."""

__version__ = "0.1.0"
