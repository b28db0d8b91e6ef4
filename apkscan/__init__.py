"""Android manifest decoding and third-party library identification."""

__version__ = "0.1.0"
