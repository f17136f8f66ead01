#!/usr/bin/env python3

"""rawtools-common.py module description.


Module that contains common code.
"""


import enum
import numpy as np
import sys


# dtype operation
# * (1) st_dtype (storage dtype): uint8 for 8-bit samples, uint16 for
#   higher bit depths.
# * (2) op_dtype (operation dtype): int32 in all cases.
ST_DTYPE_8BIT = np.uint8
ST_DTYPE_16BIT = np.uint16
OP_DTYPE = np.int32


class RawToolsException(Exception):
    """Generic rawtools issue."""


class UnknownAlgorithmException(RawToolsException):
    """Bayer algorithm name not in the algorithm table."""


class UnsupportedDepthException(RawToolsException):
    """Selected Bayer algorithm has no kernel for the requested depth."""


class InvalidGeometryException(RawToolsException):
    """Image geometry does not fit the pixel format or the buffer."""


class UnknownFormatException(RawToolsException):
    """Pixel format name not in the format table."""


class ChromaSubsample(enum.Enum):
    chroma_420 = 0
    chroma_422 = 1
    chroma_444 = 2
    chroma_411 = 3

    def get_factors(self):
        # (horizontal, vertical) chroma subsample factors
        if self == self.chroma_420:
            return 2, 2
        elif self == self.chroma_422:
            return 2, 1
        elif self == self.chroma_411:
            return 4, 1
        return 1, 1


class WarningType(enum.Enum):
    out_of_range = 0
    unsupported_format = 1
    bayer_phase = 2


def v4l2_fourcc(a, b, c, d):
    return ord(a) | (ord(b) << 8) | (ord(c) << 16) | (ord(d) << 24)


def fourcc_to_str(fourcc):
    return "".join(chr((fourcc >> shift) & 0xFF) for shift in (0, 8, 16, 24))


class ImageGeometry:
    def __init__(self, width, height, stride=None):
        self.width = width
        self.height = height
        # bytes between the beginnings of two consecutive rows in the
        # first (luma/packed) plane. None means no padding
        self.stride = stride

    def __str__(self):
        return f"width: {self.width} height: {self.height} stride: {self.stride}"

    def check(self, hsub=1, vsub=1):
        if self.width <= 0 or self.height <= 0:
            raise InvalidGeometryException(
                f"error: invalid dimensions: {self.width}x{self.height}"
            )
        if self.width % hsub != 0:
            raise InvalidGeometryException(
                f"error: width must be a multiple of {hsub} ({self.width=})"
            )
        if self.height % vsub != 0:
            raise InvalidGeometryException(
                f"error: height must be a multiple of {vsub} ({self.height=})"
            )

    def get_stride(self, row_length):
        if self.stride is None:
            return row_length
        if self.stride < row_length:
            raise InvalidGeometryException(
                f"error: stride ({self.stride}) shorter than a row ({row_length})"
            )
        return self.stride


def new_status():
    return {
        "warnings": [],
    }


def add_warning(status, wtype, message, logfd=sys.stdout, debug=0, **kwargs):
    warning = {"type": wtype, "message": message}
    warning.update(kwargs)
    status["warnings"].append(warning)
    if debug >= 0:
        print(f"warn: {message}", file=logfd)


def get_warnings(status, wtype):
    return [warning for warning in status["warnings"] if warning["type"] == wtype]


def clip_positive(arr, depth):
    max_value = 2**depth - 1
    return np.clip(arr, 0, max_value)
