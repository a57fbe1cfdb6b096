"""
xfer - find origin files missing from a destination folder and copy them.
"""

__version__ = "1.0.0"
