#!/usr/bin/env python3

"""rawtools-bayer.py module description.

Module to demosaic (raw) Bayer (CFA) planes into RGB images.

Notes:
* all kernels assume the GRBG phase (upper left pixel is green, red is
  on its right, and blue below it). The CFA phase is not detected.
* kernels work on 2x2 Bayer blocks. A raw plane of HxW samples is split
  into 4 block planes of (H/2)x(W/2) samples each:

      G0 R   <- G0 = bay[0::2, 0::2], R  = bay[0::2, 1::2]
      B  G1  <- B  = bay[1::2, 0::2], G1 = bay[1::2, 1::2]

  and every kernel produces the 4 output pixels of each block, keyed by
  their (row, col) position inside the block.
* neighbors outside the plane are never read: border blocks either
  reuse the nearest available sample or average only the neighbors that
  exist.
"""


import importlib
import numpy as np
import sys

rawtools_common = importlib.import_module("rawtools-common")

__version__ = "0.1"

OP_DTYPE = rawtools_common.OP_DTYPE

# sharpness (adaptive kernels only): 0 is bilinear interpolation, 23170
# gives the best PSNR, and human eyes like a slightly sharper picture
DEFAULT_SHARPNESS = 32768
MAX_SHARPNESS = 65535

DEFAULT_ALGORITHM_8BIT = "gptm"
DEFAULT_ALGORITHM_10BIT = "cottnoip"

# 0.8 fixed-point base weights of the Generalized Pei-Tam method. The
# first letter is the interpolated color, the second one is the color
# of the raw sample (e.g. "wrg" is red on green)
GPTM_BASE_WEIGHTS = {
    "wrg": 144,
    "wbg": 160,
    "wgr": 120,
    "wbr": 192,
    "wgb": 120,
    "wrb": 168,
}

# fixed weights used by gptm_fast
GPTM_FAST_WEIGHTS = {
    "wrg": 256,
    "wbg": 256,
    "wgr": 128,
    "wbr": 128,
    "wgb": 256,
    "wrb": 256,
}


def get_gptm_weights(sharpness):
    # sharpness^4 in 16-bit fixed point, then scaled into 10-bit weights
    wu = (sharpness * sharpness) >> 16
    wu = (wu * wu) >> 16
    return {key: (base * wu) >> 10 for key, base in GPTM_BASE_WEIGHTS.items()}


# block plane helpers
def get_block_planes(bay):
    """Split a GRBG raw plane into its (G0, R, B, G1) block planes."""
    bay = np.asarray(bay).astype(OP_DTYPE)
    return bay[0::2, 0::2], bay[0::2, 1::2], bay[1::2, 0::2], bay[1::2, 1::2]


def neighbor(plane, drow, dcol):
    # plane[i + drow][j + dcol], with the edge samples replicated
    bh, bw = plane.shape
    padded = np.pad(plane, 1, mode="edge")
    return padded[1 + drow : 1 + drow + bh, 1 + dcol : 1 + dcol + bw]


def available(shape, drow, dcol):
    # 1 where plane[i + drow][j + dcol] is inside the plane, 0 elsewhere
    bh, bw = shape
    rows = np.arange(bh) + drow
    cols = np.arange(bw) + dcol
    row_mask = (rows >= 0) & (rows < bh)
    col_mask = (cols >= 0) & (cols < bw)
    return np.outer(row_mask, col_mask).astype(OP_DTYPE)


def mean(plane, offsets, other=None, other_offsets=()):
    # (floor) mean of the neighbors at offsets that exist. An optional
    # second plane adds its own neighbors to the same mean
    total = np.zeros(plane.shape, dtype=OP_DTYPE)
    count = np.zeros(plane.shape, dtype=OP_DTYPE)
    groups = [(plane, offsets)]
    if other is not None:
        groups.append((other, other_offsets))
    for cur_plane, cur_offsets in groups:
        for drow, dcol in cur_offsets:
            mask = available(cur_plane.shape, drow, dcol)
            total += neighbor(cur_plane, drow, dcol) * mask
            count += mask
    return total // count


def clip8(plane):
    return np.clip(plane, 0, 255)


def interior_mask(shape):
    mask = np.zeros(shape, dtype=bool)
    mask[1:-1, 1:-1] = True
    return mask


def assemble(pixels, height, width, bpp, depth):
    """Interleave the block outputs into an (height, width, bpp) image.

    Components are clipped into the `depth` range, and then shifted down
    to 8 bits (truncating). The 4th component (bpp == 4) is zero.
    """
    shift = depth - 8
    rgb = np.zeros((height, width, bpp), dtype=np.uint8)
    for (drow, dcol), components in pixels.items():
        for channel, component in enumerate(components):
            component = rawtools_common.clip_positive(component, depth) >> shift
            rgb[drow::2, dcol::2, channel] = component
    return rgb


# block kernels
# Each function gets the (G0, R, B, G1) block planes, and returns a dict
# mapping the position of each output pixel in the 2x2 block to its
# (r, g, b) block planes.
def horip_pixels(g0, r, b, g1):
    # horizontal-only interpolation
    red = (neighbor(r, 0, -1) + r) >> 1
    green = (g0 + neighbor(g0, 0, 1)) >> 1
    blue = (b + neighbor(b, 0, 1)) >> 1
    return {
        (0, 0): (red, g0, b),
        (0, 1): (r, green, blue),
        (1, 0): (red, g0, b),
        (1, 1): (r, g1, blue),
    }


def ip_pixels(g0, r, b, g1):
    # full linear interpolation (3x3 stencil)
    return {
        (0, 0): (
            mean(r, ((0, -1), (0, 0))),
            g0,
            mean(b, ((-1, 0), (0, 0))),
        ),
        (0, 1): (
            r,
            mean(g1, ((-1, 0), (0, 0)), g0, ((0, 0), (0, 1))),
            mean(b, ((-1, 0), (-1, 1), (0, 0), (0, 1))),
        ),
        (1, 0): (
            mean(r, ((0, -1), (0, 0), (1, -1), (1, 0))),
            mean(g1, ((0, -1), (0, 0)), g0, ((0, 0), (1, 0))),
            b,
        ),
        (1, 1): (
            mean(r, ((0, 0), (1, 0))),
            g1,
            mean(b, ((0, 0), (0, 1))),
        ),
    }


def cott_pixels(g0, r, b, g1):
    # 0.5-displaced linear interpolation
    return {
        (0, 0): (r, (g0 + g1) >> 1, b),
        (0, 1): (r, mean(g1, ((0, 0),), g0, ((0, 1),)), neighbor(b, 0, 1)),
        (1, 0): (neighbor(r, 1, 0), mean(g1, ((0, 0),), g0, ((1, 0),)), b),
        (1, 1): (
            neighbor(r, 1, 0),
            mean(g1, ((0, 0),), g0, ((1, 1),)),
            neighbor(b, 0, 1),
        ),
    }


def cottnoip_pixels(g0, r, b, g1):
    # 0.5-displaced nearest neighbor
    green = neighbor(g0, 0, 1)
    # the last block column takes its green from G1
    green[:, -1] = g1[:, -1]
    return {
        (0, 0): (r, g0, b),
        (0, 1): (r, green, neighbor(b, 0, 1)),
        (1, 0): (neighbor(r, 1, 0), g1, b),
        (1, 1): (neighbor(r, 1, 0), g1, neighbor(b, 0, 1)),
    }


def gptm_pixels(g0, r, b, g1, weights):
    # Generalized Pei-Tam method. See "Effective Color Interpolation in
    # CCD Color Filter Arrays Using Signal Correlation", IEEE Transactions
    # on Circuits and Systems for Video Technology, vol. 13, no. 6, June
    # 2003.
    # border blocks (first and last block rows and columns)
    pixels = {
        (0, 0): (r, g0, b),
        (0, 1): (r, g0, b),
        (1, 0): (r, g1, b),
        (1, 1): (r, g1, b),
    }
    bh, bw = g0.shape
    if bh < 3 or bw < 3:
        # no interior blocks
        return pixels

    n = neighbor
    # interpolated components are clipped to 8 bits for both depths
    c = clip8

    wrg = weights["wrg"]
    wbg = weights["wbg"]
    wgr = weights["wgr"]
    wbr = weights["wbr"]
    wgb = weights["wgb"]
    wrb = weights["wrb"]

    # G0 site
    w = 4 * g0 - (n(g1, -1, -1) + n(g1, -1, 0) + n(g1, 0, -1) + g1)
    r00 = c((512 * (n(r, 0, -1) + r) + w * wrg) >> 10)
    b00 = c((512 * (n(b, -1, 0) + b) + w * wbg) >> 10)
    # R site
    w = 4 * r - (n(r, -1, 0) + n(r, 0, -1) + n(r, 0, 1) + n(r, 1, 0))
    g01 = c((256 * (n(g1, -1, 0) + g0 + n(g0, 0, 1) + g1) + w * wgr) >> 10)
    b01 = c((256 * (n(b, -1, 0) + n(b, -1, 1) + b + n(b, 0, 1)) + w * wbr) >> 10)
    # B site
    w = 4 * b - (n(b, -1, 0) + n(b, 0, -1) + n(b, 0, 1) + n(b, 1, 0))
    r10 = c((256 * (n(r, 0, -1) + r + n(r, 1, -1) + n(r, 1, 0)) + w * wrb) >> 10)
    g10 = c((256 * (g0 + n(g1, 0, -1) + g1 + n(g0, 1, 0)) + w * wgb) >> 10)
    # G1 site
    w = 4 * g1 - (g0 + n(g0, 0, 1) + n(g0, 1, 0) + n(g0, 1, 1))
    r11 = c((512 * (r + n(r, 1, 0)) + w * wrg) >> 10)
    b11 = c((512 * (b + n(b, 0, 1)) + w * wbg) >> 10)

    interior = interior_mask(g0.shape)
    return {
        (0, 0): (np.where(interior, r00, r), g0, np.where(interior, b00, b)),
        (0, 1): (r, np.where(interior, g01, g0), np.where(interior, b01, b)),
        (1, 0): (np.where(interior, r10, r), np.where(interior, g10, g1), b),
        (1, 1): (np.where(interior, r11, r), g1, np.where(interior, b11, b)),
    }


def demosaic(pixels_fun, bay, depth, bpp, *args):
    bay = np.asarray(bay)
    if bay.ndim != 2:
        raise rawtools_common.InvalidGeometryException(
            f"error: bayer plane must be 2D ({bay.shape=})"
        )
    height, width = bay.shape
    if height < 2 or width < 2 or height % 2 != 0 or width % 2 != 0:
        raise rawtools_common.InvalidGeometryException(
            f"error: bayer plane size must be even ({width}x{height})"
        )
    assert bpp in (3, 4), f"error: invalid bpp: {bpp}"
    g0, r, b, g1 = get_block_planes(bay)
    pixels = pixels_fun(g0, r, b, g1, *args)
    return assemble(pixels, height, width, bpp, depth)


# 8-bit kernels
# bay: (height, width) array of 8-bit samples (both dimensions even)
# returns a (height, width, bpp) uint8 array
def bay2rgb_horip(bay, bpp=3, sharpness=DEFAULT_SHARPNESS):
    return demosaic(horip_pixels, bay, 8, bpp)


def bay2rgb_ip(bay, bpp=3, sharpness=DEFAULT_SHARPNESS):
    return demosaic(ip_pixels, bay, 8, bpp)


def bay2rgb_cott(bay, bpp=3, sharpness=DEFAULT_SHARPNESS):
    return demosaic(cott_pixels, bay, 8, bpp)


def bay2rgb_cottnoip(bay, bpp=3, sharpness=DEFAULT_SHARPNESS):
    return demosaic(cottnoip_pixels, bay, 8, bpp)


def bay2rgb_gptm_fast(bay, bpp=3, sharpness=DEFAULT_SHARPNESS):
    return demosaic(gptm_pixels, bay, 8, bpp, GPTM_FAST_WEIGHTS)


def bay2rgb_gptm(bay, bpp=3, sharpness=DEFAULT_SHARPNESS):
    return demosaic(gptm_pixels, bay, 8, bpp, get_gptm_weights(sharpness))


# 10-bit kernels
# bay: (height, width) array of 10-bit samples in 16-bit containers
# returns a (height, width, bpp) uint8 array (components are >> 2). gptm
# clips its interpolated components to 255 before the shift, so they never
# go above 63
def bay2rgb_cottnoip10(bay, bpp=3, sharpness=DEFAULT_SHARPNESS):
    return demosaic(cottnoip_pixels, bay, 10, bpp)


def bay2rgb_gptm10(bay, bpp=3, sharpness=DEFAULT_SHARPNESS):
    return demosaic(gptm_pixels, bay, 10, bpp, get_gptm_weights(sharpness))


# algorithm table (in listing order)
ALGORITHMS = {
    "horip": {
        "algo8": bay2rgb_horip,
        "algo10": None,
    },
    "ip": {
        "algo8": bay2rgb_ip,
        "algo10": None,
    },
    "cott": {
        "algo8": bay2rgb_cott,
        "algo10": None,
    },
    "cottnoip": {
        "algo8": bay2rgb_cottnoip,
        "algo10": bay2rgb_cottnoip10,
    },
    "gptm_fast": {
        "algo8": bay2rgb_gptm_fast,
        "algo10": None,
    },
    "gptm": {
        "algo8": bay2rgb_gptm,
        "algo10": bay2rgb_gptm10,
    },
}


def list_algorithms():
    # (name, supports_8bit, supports_10bit)
    return [
        (name, entry["algo8"] is not None, entry["algo10"] is not None)
        for name, entry in ALGORITHMS.items()
    ]


def print_algorithms(logfd=sys.stdout):
    for name, supports_8bit, supports_10bit in list_algorithms():
        depths = []
        if supports_8bit:
            depths.append("8-bit")
        if supports_10bit:
            depths.append("10-bit")
        print(f"\t{name} ({','.join(depths)})", file=logfd)


# main class
class DemosaicEngine:
    """Demosaic configuration: current 8-bit/10-bit kernels and sharpness.

    Engines are independent values: two engines with different
    configurations can be used side by side.
    """

    def __init__(self, sharpness=DEFAULT_SHARPNESS, logfd=sys.stdout, debug=0):
        self.algorithm8 = DEFAULT_ALGORITHM_8BIT
        self.algo8 = ALGORITHMS[DEFAULT_ALGORITHM_8BIT]["algo8"]
        self.algorithm10 = DEFAULT_ALGORITHM_10BIT
        self.algo10 = ALGORITHMS[DEFAULT_ALGORITHM_10BIT]["algo10"]
        self.sharpness = DEFAULT_SHARPNESS
        self.logfd = logfd
        self.debug = debug
        self.SetSharpness(sharpness)

    def __str__(self):
        return (
            f"algo8: {self.algorithm8 if self.algo8 else None} "
            f"algo10: {self.algorithm10 if self.algo10 else None} "
            f"sharpness: {self.sharpness}"
        )

    @classmethod
    def ListAlgorithms(cls):
        return list_algorithms()

    def SelectAlgorithm(self, name):
        if name not in ALGORITHMS:
            raise rawtools_common.UnknownAlgorithmException(
                f"error: no algorithm called '{name}'"
            )
        self.algorithm8 = name
        self.algo8 = ALGORITHMS[name]["algo8"]
        self.algorithm10 = name
        self.algo10 = ALGORITHMS[name]["algo10"]
        if self.debug > 0:
            print(f"debug: selected algorithm: {self}", file=self.logfd)

    def SetSharpness(self, sharpness):
        if not 0 <= sharpness <= MAX_SHARPNESS:
            raise ValueError(
                f"error: sharpness must be in [0, {MAX_SHARPNESS}] ({sharpness})"
            )
        self.sharpness = int(sharpness)

    def CheckDepth(self, depth):
        # raises if there is no kernel for the bit depth
        algo = self.algo8 if depth == 8 else self.algo10
        if algo is None:
            name = self.algorithm8 if depth == 8 else self.algorithm10
            raise rawtools_common.UnsupportedDepthException(
                f"error: no {depth}-bit kernel in algorithm '{name}'"
            )

    def Bay2RGB8(self, bay, bpp=3):
        self.CheckDepth(8)
        return self.algo8(bay, bpp=bpp, sharpness=self.sharpness)

    def Bay2RGB10(self, bay, bpp=3):
        self.CheckDepth(10)
        bay = np.asarray(bay)
        if bay.size > 0 and bay.max() >= (1 << 10) and self.debug >= 0:
            print("warn: Bay2RGB10: detected illegal pixel value", file=self.logfd)
        return self.algo10(bay, bpp=bpp, sharpness=self.sharpness)
