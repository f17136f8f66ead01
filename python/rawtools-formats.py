#!/usr/bin/env python3

"""rawtools-formats.py module description.

Table of supported (V4L2) pixel formats.

Each entry describes:
* fourcc: V4L2 fourcc code (integer)
* bpp: bits per pixel (0 = variable/compressed, -1 = unknown)
* description: human-readable name. The format name is the description
  prefix up to the first space.
* path: decode path used by rawtools-rgb (None if there is no decode path)
* y_pos, cb_pos: channel layout of packed/planar YUV formats
* subsample: chroma subsample of (semi-)planar YUV formats
* depth, shift: sample depth and bit shift of mono and Bayer formats
"""


import enum
import importlib

rawtools_common = importlib.import_module("rawtools-common")

v4l2_fourcc = rawtools_common.v4l2_fourcc
ChromaSubsample = rawtools_common.ChromaSubsample


class DecodePath(enum.Enum):
    packed_yuv422 = 0
    semiplanar_yuv = 1
    planar_yuv = 2
    mono = 3
    rgb = 4
    bayer8 = 5
    bayer10 = 6


PIX_FORMATS = {
    # packed RGB formats
    "RGB332": {
        "fourcc": v4l2_fourcc("R", "G", "B", "1"),
        "bpp": 8,
        "description": "RGB332 (8  RGB-3-3-2)",
        "path": DecodePath.rgb,
    },
    "RGB555": {
        "fourcc": v4l2_fourcc("R", "G", "B", "O"),
        "bpp": 16,
        "description": "RGB555 (16  RGB-5-5-5)",
        "path": DecodePath.rgb,
    },
    "RGB565": {
        "fourcc": v4l2_fourcc("R", "G", "B", "P"),
        "bpp": 16,
        "description": "RGB565 (16  RGB-5-6-5)",
        "path": DecodePath.rgb,
    },
    "RGB555X": {
        "fourcc": v4l2_fourcc("R", "G", "B", "Q"),
        "bpp": 16,
        "description": "RGB555X (16  RGB-5-5-5 BE)",
        "path": DecodePath.rgb,
    },
    "RGB565X": {
        "fourcc": v4l2_fourcc("R", "G", "B", "R"),
        "bpp": 16,
        "description": "RGB565X (16  RGB-5-6-5 BE)",
        "path": DecodePath.rgb,
    },
    "BGR24": {
        "fourcc": v4l2_fourcc("B", "G", "R", "3"),
        "bpp": 24,
        "description": "BGR24 (24  BGR-8-8-8)",
        "path": DecodePath.rgb,
    },
    "RGB24": {
        "fourcc": v4l2_fourcc("R", "G", "B", "3"),
        "bpp": 24,
        "description": "RGB24 (24  RGB-8-8-8)",
        "path": DecodePath.rgb,
    },
    "BGR32": {
        "fourcc": v4l2_fourcc("B", "G", "R", "4"),
        "bpp": 32,
        "description": "BGR32 (32  BGR-8-8-8-8)",
        "path": DecodePath.rgb,
    },
    "RGB32": {
        "fourcc": v4l2_fourcc("R", "G", "B", "4"),
        "bpp": 32,
        "description": "RGB32 (32  RGB-8-8-8-8)",
        "path": DecodePath.rgb,
    },
    # monochrome formats
    "GREY": {
        "fourcc": v4l2_fourcc("G", "R", "E", "Y"),
        "bpp": 8,
        "description": "GREY (8  Greyscale)",
        "path": DecodePath.mono,
        "depth": 8,
        "shift": 0,
    },
    "Y10": {
        "fourcc": v4l2_fourcc("Y", "1", "0", " "),
        "bpp": 16,
        "description": "Y10 (10 Greyscale)",
        "path": DecodePath.mono,
        "depth": 10,
        "shift": 2,
    },
    "Y12": {
        "fourcc": v4l2_fourcc("Y", "1", "2", " "),
        "bpp": 16,
        "description": "Y12 (12 Greyscale)",
        "path": DecodePath.mono,
        "depth": 12,
        "shift": 4,
    },
    # packed YUV 4:2:2 formats
    # y_pos: position of the first luma sample in the 4-byte group
    # cb_pos: position of the Cb sample (Cr is 2 bytes away)
    "UYVY": {
        "fourcc": v4l2_fourcc("U", "Y", "V", "Y"),
        "bpp": 16,
        "description": "UYVY (16  YUV 4:2:2)",
        "path": DecodePath.packed_yuv422,
        "y_pos": 1,
        "cb_pos": 0,
    },
    "VYUY": {
        "fourcc": v4l2_fourcc("V", "Y", "U", "Y"),
        "bpp": 16,
        "description": "VYUY (16  YUV 4:2:2)",
        "path": DecodePath.packed_yuv422,
        "y_pos": 1,
        "cb_pos": 2,
    },
    "YUYV": {
        "fourcc": v4l2_fourcc("Y", "U", "Y", "V"),
        "bpp": 16,
        "description": "YUYV (16  YUV 4:2:2)",
        "path": DecodePath.packed_yuv422,
        "y_pos": 0,
        "cb_pos": 1,
    },
    "YVYU": {
        "fourcc": v4l2_fourcc("Y", "V", "Y", "U"),
        "bpp": 16,
        "description": "YVYU (16  YUV 4:2:2)",
        "path": DecodePath.packed_yuv422,
        "y_pos": 0,
        "cb_pos": 3,
    },
    # planar YUV formats
    # cb_pos: 0 if the Cb plane goes first, 1 if the Cr plane goes first
    "YUV410P": {
        "fourcc": v4l2_fourcc("Y", "U", "V", "9"),
        "bpp": -1,
        "description": "YUV410P (9  YUV 4:1:0 planar)",
        "path": None,
        "y_pos": 0,
        "cb_pos": 0,
    },
    "YVU410P": {
        "fourcc": v4l2_fourcc("Y", "V", "U", "9"),
        "bpp": -1,
        "description": "YVU410P (9  YVU 4:1:0 planar)",
        "path": None,
        "y_pos": 0,
        "cb_pos": 1,
    },
    "YUV411P": {
        "fourcc": v4l2_fourcc("4", "1", "1", "P"),
        "bpp": 12,
        "description": "YUV411P (12  YUV 4:1:1 planar)",
        "path": DecodePath.planar_yuv,
        "subsample": ChromaSubsample.chroma_411,
        "y_pos": 0,
        "cb_pos": 0,
    },
    "YUV420P": {
        "fourcc": v4l2_fourcc("Y", "U", "1", "2"),
        "bpp": 12,
        "description": "YUV420P (12  YUV 4:2:0 planar)",
        "path": DecodePath.planar_yuv,
        "subsample": ChromaSubsample.chroma_420,
        "y_pos": 0,
        "cb_pos": 0,
    },
    "YVU420P": {
        "fourcc": v4l2_fourcc("Y", "V", "1", "2"),
        "bpp": 12,
        "description": "YVU420P (12  YVU 4:2:0 planar)",
        "path": DecodePath.planar_yuv,
        "subsample": ChromaSubsample.chroma_420,
        "y_pos": 0,
        "cb_pos": 1,
    },
    "YUV422P": {
        "fourcc": v4l2_fourcc("4", "2", "2", "P"),
        "bpp": 16,
        "description": "YUV422P (16  YUV 4:2:2 planar)",
        "path": DecodePath.planar_yuv,
        "subsample": ChromaSubsample.chroma_422,
        "y_pos": 0,
        "cb_pos": 0,
    },
    "YVU422P": {
        "fourcc": v4l2_fourcc("Y", "M", "6", "1"),
        "bpp": 16,
        "description": "YVU422P (16  YVU 4:2:2 planar)",
        "path": DecodePath.planar_yuv,
        "subsample": ChromaSubsample.chroma_422,
        "y_pos": 0,
        "cb_pos": 1,
    },
    "YUV444P": {
        "fourcc": v4l2_fourcc("Y", "M", "2", "4"),
        "bpp": 24,
        "description": "YUV444P (24  YUV 4:4:4 planar)",
        "path": DecodePath.planar_yuv,
        "subsample": ChromaSubsample.chroma_444,
        "y_pos": 0,
        "cb_pos": 0,
    },
    "YVU444P": {
        "fourcc": v4l2_fourcc("Y", "M", "4", "2"),
        "bpp": 24,
        "description": "YVU444P (24  YVU 4:4:4 planar)",
        "path": DecodePath.planar_yuv,
        "subsample": ChromaSubsample.chroma_444,
        "y_pos": 0,
        "cb_pos": 1,
    },
    "Y41P": {
        "fourcc": v4l2_fourcc("Y", "4", "1", "P"),
        "bpp": 12,
        "description": "Y41P (12  YUV 4:1:1)",
        "path": None,
        "y_pos": 0,
        "cb_pos": 0,
    },
    # semi-planar YUV formats
    # cb_pos: 0 for Cb/Cr chroma sample order, 1 for Cr/Cb
    "NV12": {
        "fourcc": v4l2_fourcc("N", "V", "1", "2"),
        "bpp": 12,
        "description": "NV12 (12  Y/CbCr 4:2:0)",
        "path": DecodePath.semiplanar_yuv,
        "subsample": ChromaSubsample.chroma_420,
        "y_pos": 0,
        "cb_pos": 0,
    },
    "NV21": {
        "fourcc": v4l2_fourcc("N", "V", "2", "1"),
        "bpp": 12,
        "description": "NV21 (12  Y/CrCb 4:2:0)",
        "path": DecodePath.semiplanar_yuv,
        "subsample": ChromaSubsample.chroma_420,
        "y_pos": 0,
        "cb_pos": 1,
    },
    "NV16": {
        "fourcc": v4l2_fourcc("N", "V", "1", "6"),
        "bpp": 16,
        "description": "NV16 (16  Y/CbCr 4:2:2)",
        "path": DecodePath.semiplanar_yuv,
        "subsample": ChromaSubsample.chroma_422,
        "y_pos": 0,
        "cb_pos": 0,
    },
    "NV61": {
        "fourcc": v4l2_fourcc("N", "V", "6", "1"),
        "bpp": 16,
        "description": "NV61 (16  Y/CrCb 4:2:2)",
        "path": DecodePath.semiplanar_yuv,
        "subsample": ChromaSubsample.chroma_422,
        "y_pos": 0,
        "cb_pos": 1,
    },
    "YYUV": {
        "fourcc": v4l2_fourcc("Y", "Y", "U", "V"),
        "bpp": 12,
        "description": "YYUV (16  YUV 4:2:2)",
        "path": None,
        "y_pos": 0,
        "cb_pos": 0,
    },
    "HI240": {
        "fourcc": v4l2_fourcc("H", "I", "2", "4"),
        "bpp": 8,
        "description": "HI240 (8  8-bit color)",
        "path": None,
    },
    # Bayer formats (upper left pixel is assumed to be green)
    "SBGGR8": {
        "fourcc": v4l2_fourcc("B", "A", "8", "1"),
        "bpp": 8,
        "description": "SBGGR8 (8  BGBG.. GRGR..)",
        "path": DecodePath.bayer8,
        "depth": 8,
        "shift": 0,
        "phase_supported": False,
    },
    "SGBRG8": {
        "fourcc": v4l2_fourcc("G", "B", "R", "G"),
        "bpp": 8,
        "description": "SGBRG8 (8  GBGB.. RGRG..)",
        "path": DecodePath.bayer8,
        "depth": 8,
        "shift": 0,
        "phase_supported": False,
    },
    "SGRBG8": {
        "fourcc": v4l2_fourcc("G", "R", "B", "G"),
        "bpp": 8,
        "description": "SGRBG8 (8 GRGR.. BGBG..)",
        "path": DecodePath.bayer8,
        "depth": 8,
        "shift": 0,
        "phase_supported": True,
    },
    # compressed formats
    "MJPEG": {
        "fourcc": v4l2_fourcc("M", "J", "P", "G"),
        "bpp": 0,
        "description": "MJPEG (Motion-JPEG)",
        "path": None,
    },
    "JPEG": {
        "fourcc": v4l2_fourcc("J", "P", "E", "G"),
        "bpp": 0,
        "description": "JPEG (JFIF JPEG)",
        "path": None,
    },
    "DV": {
        "fourcc": v4l2_fourcc("d", "v", "s", "d"),
        "bpp": 0,
        "description": "DV (1394)",
        "path": None,
    },
    "MPEG": {
        "fourcc": v4l2_fourcc("M", "P", "E", "G"),
        "bpp": 0,
        "description": "MPEG (MPEG-1/2/4)",
        "path": None,
    },
    "WNVA": {
        "fourcc": v4l2_fourcc("W", "N", "V", "A"),
        "bpp": -1,
        "description": "WNVA (Winnov hw compress)",
        "path": None,
    },
    "SN9C10X": {
        "fourcc": v4l2_fourcc("S", "9", "1", "0"),
        "bpp": -1,
        "description": "SN9C10X (SN9C10x compression)",
        "path": None,
    },
    "PWC1": {
        "fourcc": v4l2_fourcc("P", "W", "C", "1"),
        "bpp": -1,
        "description": "PWC1 (pwc older webcam)",
        "path": None,
    },
    "PWC2": {
        "fourcc": v4l2_fourcc("P", "W", "C", "2"),
        "bpp": -1,
        "description": "PWC2 (pwc newer webcam)",
        "path": None,
    },
    "ET61X251": {
        "fourcc": v4l2_fourcc("E", "6", "2", "5"),
        "bpp": -1,
        "description": "ET61X251 (ET61X251 compression)",
        "path": None,
    },
    # higher-depth Bayer formats (16-bit little-endian containers)
    # shift: right shift that brings the samples into the 10-bit range
    "SGRBG10": {
        "fourcc": v4l2_fourcc("B", "A", "1", "0"),
        "bpp": 16,
        "description": "SGRBG10 (10bit raw bayer)",
        "path": DecodePath.bayer10,
        "depth": 10,
        "shift": 0,
        "phase_supported": True,
    },
    "SGRBG10DPCM8": {
        "fourcc": v4l2_fourcc("B", "D", "1", "0"),
        "bpp": 8,
        "description": "SGRBG10DPCM8 (10bit raw bayer DPCM compressed to 8 bits)",
        "path": None,
    },
    "SGRBG12": {
        "fourcc": v4l2_fourcc("B", "A", "1", "2"),
        "bpp": 16,
        "description": "SGRBG12 (12bit raw bayer)",
        "path": DecodePath.bayer10,
        "depth": 12,
        "shift": 2,
        "phase_supported": True,
    },
    "SBGGR16": {
        "fourcc": v4l2_fourcc("B", "Y", "R", "2"),
        "bpp": 16,
        "description": "SBGGR16 (16 BGBG.. GRGR..)",
        "path": DecodePath.bayer10,
        "depth": 16,
        "shift": 6,
        "phase_supported": False,
    },
}


def list_formats():
    return list(PIX_FORMATS.keys())


def get_format_info(fourcc):
    # look up by numeric tag
    for name, info in PIX_FORMATS.items():
        if info["fourcc"] == fourcc:
            return dict(info, name=name)
    return None


def get_format_by_name(name):
    # look up by the description prefix (case-sensitive, whole word)
    for key, info in PIX_FORMATS.items():
        if info["description"].split(" ")[0] == name:
            return dict(info, name=key)
    raise rawtools_common.UnknownFormatException(f"error: bad format: {name}")


def get_fourcc(name):
    return get_format_by_name(name)["fourcc"]
