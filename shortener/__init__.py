"""
shortener package initializer.
"""

__version__ = "0.1.0"
