"""debloatctl - Package state console for attached Android devices."""

__version__ = "0.1.0"
