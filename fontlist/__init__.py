"""Fontlist – enumerate installed font families and their names."""

__version__ = "0.1.0"
