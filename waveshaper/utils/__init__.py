"""
Utility functions for waveshaper processing.

This module provides helper functions for:
- Mono/multichannel layout canonicalization
"""

from waveshaper.utils.shapes import canonicalize_channels, restore_channels

__all__ = [
    "canonicalize_channels",
    "restore_channels",
]
