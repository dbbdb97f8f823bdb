"""
API Routers for imagemanip
"""

from . import image, system

__all__ = ["image", "system"]
