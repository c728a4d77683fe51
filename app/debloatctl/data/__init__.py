"""Bundled data files (fallback catalog, default theme)."""
