"""barprep — Texas bar exam preparation backend."""

__version__ = "0.1.0"
