#!/usr/bin/env python3

"""rawtools-yuvcommon.py module description.

Common YUV/RGB code.
"""

import importlib
import numpy as np

rawtools_common = importlib.import_module("rawtools-common")


# fractional bits of the yuv_to_rgb() fixed-point coefficients
RGBSHIFT = 8


def clip8(val):
    if isinstance(val, np.ndarray):
        return np.clip(val, 0, 255)
    return 0 if val < 0 else (255 if val > 255 else int(val))


# numpy inputs (arrays and scalars) may be unsigned 8-bit
def widen(val):
    if isinstance(val, np.ndarray):
        return val.astype(rawtools_common.OP_DTYPE)
    return int(val)


def yuv_to_rgb(y, u, v):
    """Convert a (limited range) BT.601 YCbCr triple into RGB.

    Integer-only conversion, with the +128 rounding bias before the shift.
    Works on python or numpy integers and on numpy arrays (elementwise). Inputs are
    not range-checked: results are clipped into [0, 255].

    Args:
        y: luma sample(s)
        u: Cb sample(s)
        v: Cr sample(s)

    Returns:
        (r, g, b) tuple
    """
    y, u, v = widen(y), widen(u), widen(v)
    c = y - 16
    d = u - 128
    e = v - 128
    r = clip8((298 * c + 409 * e + 128) >> RGBSHIFT)
    g = clip8((298 * c - 100 * d - 208 * e + 128) >> RGBSHIFT)
    b = clip8((298 * c + 516 * d + 128) >> RGBSHIFT)
    return r, g, b


# converts a chroma-subsampled matrix into a non-chroma subsampled one
# Algo is very simple (just dup values)
def chroma_subsample_reverse(in_chroma_matrix, height, width, chroma_subsample):
    hsub, vsub = chroma_subsample.get_factors()
    out_chroma_matrix = np.repeat(np.repeat(in_chroma_matrix, vsub, axis=0), hsub, axis=1)
    # enforce the luminance size
    return out_chroma_matrix[:height, :width]
