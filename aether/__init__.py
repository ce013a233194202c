"""Aether - streaming web-app generation"""

__version__ = "1.0.0"
