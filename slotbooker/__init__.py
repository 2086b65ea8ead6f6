"""
slotbooker - book one-hour session slots with mandatory breaks.
"""

__version__ = "0.1.0"
