"""Conversion pattern analysis: which entity pairs predict a conversion."""

__version__ = "0.1.0"
