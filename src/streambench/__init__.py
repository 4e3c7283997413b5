"""
streambench: find how many concurrent hardware-accelerated media streams a
host can sustain.
"""

__version__ = "0.1.0"
