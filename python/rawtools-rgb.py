#!/usr/bin/env python3

"""rawtools-rgb.py module description.

Decodes raw pixel buffers (packed/planar YUV, packed RGB, greyscale, and
Bayer raw) into interleaved 8-bit RGB images.
"""


import importlib
import numpy as np
import sys

rawtools_common = importlib.import_module("rawtools-common")
rawtools_yuvcommon = importlib.import_module("rawtools-yuvcommon")
rawtools_formats = importlib.import_module("rawtools-formats")
rawtools_bayer = importlib.import_module("rawtools-bayer")

DecodePath = rawtools_formats.DecodePath
WarningType = rawtools_common.WarningType

# format used when the requested one has no decode path
FALLBACK_FORMAT = "UYVY"

# brightness is 8.8 fixed point
BRIGHTNESS_SHIFT = 8
DEFAULT_BRIGHTNESS = 1 << BRIGHTNESS_SHIFT

# bayer samples are normalized to 10 bits. High-bits mode means the
# samples use the 10 MSB of the 16-bit container
BAYER_DEPTH = 10
BAYER_HIGH_BITS_SHIFT = 6


# plane readers
def get_plane(data, offset, rows, row_length, stride, name):
    """Get a (rows, row_length) plane from a flat uint8 array.

    Consecutive rows start `stride` bytes apart. Raises if the buffer does
    not contain the whole plane.
    """
    needed = offset + (rows - 1) * stride + row_length
    if len(data) < needed:
        raise rawtools_common.InvalidGeometryException(
            f"error: buffer too short for the {name} plane ({len(data)} < {needed})"
        )
    chunk = data[offset : offset + rows * stride]
    if len(chunk) < rows * stride:
        # the last row has no trailing padding
        padding = np.zeros(rows * stride - len(chunk), dtype=chunk.dtype)
        chunk = np.concatenate((chunk, padding))
    return chunk.reshape(rows, stride)[:, :row_length]


def get_plane_16le(data, offset, rows, columns, stride, name):
    # 16-bit little-endian samples
    plane = get_plane(data, offset, rows, columns * 2, stride, name)
    return np.ascontiguousarray(plane).view("<u2").astype(np.uint16)


# decode paths
# Each function returns the (r, g, b) planes of the full image.
def decode_packed_yuv422(data, width, height, stride, info):
    y_pos = info["y_pos"]
    cb_pos = info["cb_pos"]
    cr_pos = (cb_pos + 2) % 4
    plane = get_plane(data, 0, height, width * 2, stride, "packed")
    # every 4-byte group carries 2 luma samples and a shared chroma pair
    groups = plane.reshape(height, width // 2, 4)
    y = np.stack((groups[:, :, y_pos], groups[:, :, y_pos + 2]), axis=2)
    y = y.reshape(height, width)
    cb = np.repeat(groups[:, :, cb_pos], 2, axis=1)
    cr = np.repeat(groups[:, :, cr_pos], 2, axis=1)
    return rawtools_yuvcommon.yuv_to_rgb(y, cb, cr)


def decode_semiplanar_yuv(data, width, height, stride, info):
    chroma_subsample = info["subsample"]
    hsub, vsub = chroma_subsample.get_factors()
    y = get_plane(data, 0, height, width, stride, "luma")
    # interleaved chroma plane: (width / hsub) chroma pairs per row
    chroma_rows = height // vsub
    chroma_row_length = (width // hsub) * 2
    chroma_stride = stride * chroma_row_length // width
    chroma = get_plane(
        data, stride * height, chroma_rows, chroma_row_length, chroma_stride, "chroma"
    )
    cb_pos = info["cb_pos"]
    cb = chroma[:, cb_pos::2]
    cr = chroma[:, 1 - cb_pos :: 2]
    cb = rawtools_yuvcommon.chroma_subsample_reverse(cb, height, width, chroma_subsample)
    cr = rawtools_yuvcommon.chroma_subsample_reverse(cr, height, width, chroma_subsample)
    return rawtools_yuvcommon.yuv_to_rgb(y, cb, cr)


def decode_planar_yuv(data, width, height, stride, info):
    chroma_subsample = info["subsample"]
    hsub, vsub = chroma_subsample.get_factors()
    y = get_plane(data, 0, height, width, stride, "luma")
    # chroma planes follow the luma plane, with the subsampled geometry
    chroma_width = width // hsub
    chroma_height = height // vsub
    chroma_stride = stride // hsub
    offset0 = stride * height
    offset1 = offset0 + chroma_stride * chroma_height
    u = get_plane(data, offset0, chroma_height, chroma_width, chroma_stride, "chroma")
    v = get_plane(data, offset1, chroma_height, chroma_width, chroma_stride, "chroma")
    # cb_pos 1 means that the Cr plane goes first
    cb, cr = (u, v) if info["cb_pos"] == 0 else (v, u)
    cb = rawtools_yuvcommon.chroma_subsample_reverse(cb, height, width, chroma_subsample)
    cr = rawtools_yuvcommon.chroma_subsample_reverse(cr, height, width, chroma_subsample)
    return rawtools_yuvcommon.yuv_to_rgb(y, cb, cr)


def decode_mono(data, width, height, stride, info):
    if info["depth"] == 8:
        a = get_plane(data, 0, height, width, stride, "mono")
    else:
        a = get_plane_16le(data, 0, height, width, stride, "mono")
        a = np.clip(a >> info["shift"], 0, 255).astype(np.uint8)
    return a, a, a


def decode_rgb(data, width, height, stride, info):
    name = info["name"]
    if name == "RGB332":
        p = get_plane(data, 0, height, width, stride, "rgb").astype(np.int32)
        r = p & 0xE0
        g = (p << 3) & 0xE0
        b = (p << 6) & 0xC0
    elif name in ("RGB555", "RGB565", "RGB555X", "RGB565X"):
        plane = get_plane(data, 0, height, width * 2, stride, "rgb").astype(np.int32)
        byte0, byte1 = plane[:, 0::2], plane[:, 1::2]
        # "X" formats are big-endian
        p = (byte0 << 8) | byte1 if name.endswith("X") else (byte1 << 8) | byte0
        if name.startswith("RGB555"):
            r = (p >> 7) & 0xF8
            g = (p >> 2) & 0xF8
            b = (p << 3) & 0xF8
        else:
            r = (p >> 8) & 0xF8
            g = (p >> 3) & 0xFC
            b = (p << 3) & 0xF8
    elif name in ("RGB24", "BGR24"):
        plane = get_plane(data, 0, height, width * 3, stride, "rgb")
        pixels = plane.reshape(height, width, 3)
        r, g, b = pixels[:, :, 0], pixels[:, :, 1], pixels[:, :, 2]
        if name == "BGR24":
            r, b = b, r
    else:
        assert name in ("RGB32", "BGR32"), f"error: invalid rgb format: {name}"
        plane = get_plane(data, 0, height, width * 4, stride, "rgb")
        pixels = plane.reshape(height, width, 4)
        # the pad/alpha byte is ignored
        if name == "BGR32":
            b, g, r = pixels[:, :, 0], pixels[:, :, 1], pixels[:, :, 2]
        else:
            r, g, b = pixels[:, :, 1], pixels[:, :, 2], pixels[:, :, 3]
    return r, g, b


def normalize_bayer(bay, shift, brightness, depth):
    """Normalize raw Bayer samples.

    Applies `v = clip((v >> shift) * brightness >> 8)` to every sample,
    where brightness is 8.8 fixed point and clipping is into the `depth`
    range. The input plane is not modified.

    Returns:
        (normalized plane, list of (row, col, value) for the samples that
        were outside the `depth` range after the shift)
    """
    max_value = (1 << depth) - 1
    v = bay.astype(np.int64) >> shift
    out_of_range = [
        (int(row), int(col), int(v[row, col]))
        for row, col in zip(*np.nonzero((v < 0) | (v > max_value)))
    ]
    v = (v * brightness) >> BRIGHTNESS_SHIFT
    v = np.clip(v, 0, max_value)
    st_dtype = (
        rawtools_common.ST_DTYPE_8BIT if depth == 8 else rawtools_common.ST_DTYPE_16BIT
    )
    return v.astype(st_dtype), out_of_range


def decode_bayer(data, width, height, stride, info, engine, high_bits, brightness,
                 status, logfd, debug):
    if info["path"] == DecodePath.bayer8:
        # 8-bit samples go to the kernel unscaled
        bay = get_plane(data, 0, height, width, stride, "bayer")
        rgb = engine.Bay2RGB8(bay)
        return rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2]

    bay = get_plane_16le(data, 0, height, width, stride, "bayer")
    shift = BAYER_HIGH_BITS_SHIFT if high_bits else info["shift"]
    bay, out_of_range = normalize_bayer(bay, shift, brightness, BAYER_DEPTH)
    for row, col, value in out_of_range:
        rawtools_common.add_warning(
            status,
            WarningType.out_of_range,
            f"bayer image pixel value out of range ({value}) at ({row}, {col})",
            debug=-1,
            row=row,
            col=col,
            value=value,
        )
    if out_of_range and debug >= 0:
        print(
            f"warn: bayer image pixel values out of range ({len(out_of_range)} samples)",
            file=logfd,
        )
    rgb = engine.Bay2RGB10(bay)
    return rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2]


def get_geometry_factors(info):
    # (horizontal, vertical) multiples required for width and height
    path = info["path"]
    if path == DecodePath.packed_yuv422:
        return 2, 1
    elif path in (DecodePath.semiplanar_yuv, DecodePath.planar_yuv):
        return info["subsample"].get_factors()
    elif path in (DecodePath.bayer8, DecodePath.bayer10):
        return 2, 2
    return 1, 1


def get_row_length(info, width):
    # bytes per row of the first plane (without padding)
    if info["path"] in (DecodePath.semiplanar_yuv, DecodePath.planar_yuv):
        return width
    return width * info["bpp"] // 8


def get_decode_info(pix_fmt, status, logfd, debug):
    if isinstance(pix_fmt, str):
        info = rawtools_formats.get_format_by_name(pix_fmt)
    else:
        info = rawtools_formats.get_format_info(pix_fmt)
    if info is None or info["path"] is None:
        name = (
            info["name"]
            if info is not None
            else rawtools_common.fourcc_to_str(pix_fmt)
        )
        rawtools_common.add_warning(
            status,
            WarningType.unsupported_format,
            f"unsupported format {name}: decoding as {FALLBACK_FORMAT}",
            logfd=logfd,
            debug=debug,
            pix_fmt=name,
        )
        info = rawtools_formats.get_format_by_name(FALLBACK_FORMAT)
    return info


def decode(
    pix_fmt,
    width,
    height,
    buffer,
    engine=None,
    swap_rb=False,
    high_bits=False,
    brightness=DEFAULT_BRIGHTNESS,
    stride=None,
    out=None,
    logfd=sys.stdout,
    debug=0,
):
    """Decode a raw pixel buffer into an interleaved RGB image.

    Args:
        pix_fmt: pixel format (fourcc integer or format name)
        width, height: image size in pixels
        buffer: raw data (bytes-like or uint8 numpy array). Never modified.
        engine: DemosaicEngine used for Bayer formats (a default one is
            created if None)
        swap_rb: exchange the R and B output channels
        high_bits: Bayer 16-bit containers carry the samples in the MSB
        brightness: 10-bit Bayer brightness multiplier (8.8 fixed point)
        stride: bytes between consecutive rows of the first plane (None
            for no padding)
        out: optional (height, width, 3) uint8 array to write into

    Returns:
        (rgb, status): rgb is a (height, width, 3) uint8 array, and status
        contains the structured warnings ("warnings" key)
    """
    status = rawtools_common.new_status()
    info = get_decode_info(pix_fmt, status, logfd, debug)
    status["pix_fmt"] = info["name"]
    path = info["path"]

    # fatal checks go before any output is produced
    geometry = rawtools_common.ImageGeometry(width, height, stride)
    geometry.check(*get_geometry_factors(info))
    stride = geometry.get_stride(get_row_length(info, width))
    if out is not None and (out.shape != (height, width, 3) or out.dtype != np.uint8):
        raise rawtools_common.InvalidGeometryException(
            f"error: invalid output buffer: {out.shape} {out.dtype}"
        )
    if path in (DecodePath.bayer8, DecodePath.bayer10):
        engine = engine if engine is not None else rawtools_bayer.DemosaicEngine()
        engine.CheckDepth(8 if path == DecodePath.bayer8 else BAYER_DEPTH)
        if not info["phase_supported"]:
            rawtools_common.add_warning(
                status,
                WarningType.bayer_phase,
                f"bayer phase of {info['name']} not supported -> expect bad colors",
                logfd=logfd,
                debug=debug,
                pix_fmt=info["name"],
            )

    data = np.frombuffer(buffer, dtype=np.uint8)
    if debug > 0:
        print(f"debug: decode {info['name']} {geometry} path: {path}", file=logfd)

    if path == DecodePath.packed_yuv422:
        r, g, b = decode_packed_yuv422(data, width, height, stride, info)
    elif path == DecodePath.semiplanar_yuv:
        r, g, b = decode_semiplanar_yuv(data, width, height, stride, info)
    elif path == DecodePath.planar_yuv:
        r, g, b = decode_planar_yuv(data, width, height, stride, info)
    elif path == DecodePath.mono:
        r, g, b = decode_mono(data, width, height, stride, info)
    elif path == DecodePath.rgb:
        r, g, b = decode_rgb(data, width, height, stride, info)
    else:
        assert path in (
            DecodePath.bayer8,
            DecodePath.bayer10,
        ), f"error: invalid decode path: {path}"
        r, g, b = decode_bayer(
            data, width, height, stride, info, engine, high_bits, brightness,
            status, logfd, debug,
        )

    if swap_rb:
        r, b = b, r
    rgb = np.stack((r, g, b), axis=2).astype(np.uint8)
    if out is not None:
        out[...] = rgb
        rgb = out
    return rgb, status
