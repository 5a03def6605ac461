"""ConvertSave - route dropped files to the right external converter."""

__version__ = "0.1.0"
