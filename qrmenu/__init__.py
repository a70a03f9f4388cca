"""
QR Menu
Digital restaurant menus behind QR codes, with a read-through menu cache
"""

__version__ = "1.0.0"
