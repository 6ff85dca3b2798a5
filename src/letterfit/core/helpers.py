# SPDX-License-Identifier: Apache-2.0
"""Unit conversions and pypdfium2 raw API helpers."""

import ctypes

POINTS_PER_INCH = 72.0
MM_PER_INCH = 25.4
CSS_PX_PER_INCH = 96.0


def mm_to_pt(value: float) -> float:
    """Convert millimeters to points."""
    return value * POINTS_PER_INCH / MM_PER_INCH


def px_to_pt(value: float) -> float:
    """Convert CSS pixels (96 per inch) to points."""
    return value * POINTS_PER_INCH / CSS_PX_PER_INCH


def to_byte_array(data: bytes) -> ctypes.Array:
    """Convert bytes to ctypes array of unsigned bytes.

    Used for passing font files to PDFium. The returned array must stay
    referenced for as long as PDFium uses the font.

    Args:
        data: Bytes to convert

    Returns:
        ctypes array of c_ubyte
    """
    return (ctypes.c_ubyte * len(data)).from_buffer_copy(data)
