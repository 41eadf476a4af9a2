"""adrctl — decision record control."""

__version__ = "0.4.0"
