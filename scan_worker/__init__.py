"""Background website audit worker"""

__version__ = "1.0.0"
