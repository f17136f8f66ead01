#!/usr/bin/env python3

"""rawtools-rgbpnm.py module description.

Converts headerless raw images (YUV, RGB, greyscale, and Bayer raw) into
RGB image files (binary PNM, or any other format supported by opencv).
"""


import argparse
import cv2
import importlib
import numpy as np
import os
import sys

rawtools_common = importlib.import_module("rawtools-common")
rawtools_formats = importlib.import_module("rawtools-formats")
rawtools_bayer = importlib.import_module("rawtools-bayer")
rawtools_rgb = importlib.import_module("rawtools-rgb")

__version__ = "0.1"

# resolutions used to guess the size of a single-frame file
RESOLUTIONS = (
    (176, 144),  # QCIF
    (320, 240),  # QVGA
    (352, 288),  # CIF
    (640, 480),  # VGA
    (720, 576),  # PAL D1
    (768, 576),  # 1:1 aspect PAL D1
    (1920, 1440),  # 3VGA
    (2560, 1920),  # 4VGA
    (2592, 1944),  # 5 MP
    (2592, 1968),  # 5 MP + a bit extra
)

PNM_EXTENSIONS = ("", ".pnm", ".ppm")

default_values = {
    "debug": 0,
    "algorithm": None,
    "brightness": 1.0,
    "pix_fmt": "UYVY",
    "high_bits": False,
    "multiple": False,
    "width": -1,
    "height": -1,
    "swap_rb": False,
    "sharpness": rawtools_bayer.DEFAULT_SHARPNESS,
    "infile": None,
    "outfile": None,
}


def guess_resolution(file_size, bpp):
    for width, height in RESOLUTIONS:
        if width * height * bpp == file_size * 8:
            return width, height
    raise rawtools_common.InvalidGeometryException(
        "error: can't guess raw image file resolution"
    )


def read_raw_data(infile, framenum, width, height, bpp, logfd=sys.stdout, debug=0):
    """Read the raw data of a frame.

    Args:
        infile: input file name
        framenum: frame number (None for a single-frame file)
        width, height: frame size (non-positive means guess it from the
            file size, only for single-frame files)
        bpp: bits per pixel

    Returns:
        (data, width, height): data is None if the file does not contain
        frame `framenum`
    """
    file_size = os.path.getsize(infile)
    if width <= 0 or height <= 0:
        if framenum is not None:
            raise rawtools_common.InvalidGeometryException(
                "error: can not automatically detect frame size with multiple frames"
            )
        width, height = guess_resolution(file_size, bpp)
    frame_bits = width * height * bpp
    frame_size = (frame_bits + 7) // 8

    padding = 0
    line_length = width * bpp // 8
    if framenum is None:
        if file_size * 8 < frame_bits:
            raise rawtools_common.InvalidGeometryException(
                f"error: out of input data ({file_size} < {frame_size})"
            )
        if file_size * 8 > frame_bits:
            print("warn: too large image file", file=logfd)
        if file_size % height == 0:
            padding = file_size // height - line_length
            if debug >= 0:
                print(f"info: {padding} padding bytes detected at end of line", file=logfd)
    elif (file_size * 8) % frame_bits != 0:
        print("warn: input size not multiple of frame size", file=logfd)

    if framenum is not None and debug >= 0:
        print(f"info: reading frame {framenum}...", file=logfd)
    offset = (framenum or 0) * frame_bits // 8
    if (file_size - offset) * 8 < frame_bits:
        return None, width, height
    with open(infile, "rb") as fin:
        fin.seek(offset)
        if padding == 0:
            data = fin.read(frame_size)
        else:
            # strip the padding at the end of every line
            lines = []
            for _ in range(height):
                lines.append(fin.read(line_length))
                fin.seek(padding, os.SEEK_CUR)
            data = b"".join(lines)
    return data, width, height


def write_pnm(outfile, rgb):
    """Write an RGB image (height, width, 3) into a file.

    Uses binary PPM (P6) for pnm/ppm (or no) extensions, and opencv for
    anything else.
    """
    height, width, _ = rgb.shape
    extension = os.path.splitext(outfile)[1].lower()
    if extension in PNM_EXTENSIONS:
        with open(outfile, "wb") as fout:
            fout.write(f"P6\n{width} {height}\n255\n".encode("ascii"))
            fout.write(np.ascontiguousarray(rgb, dtype=np.uint8).tobytes())
    else:
        # opencv uses BGR order
        bgr = cv2.cvtColor(np.ascontiguousarray(rgb), cv2.COLOR_RGB2BGR)
        if not cv2.imwrite(outfile, bgr):
            raise rawtools_common.RawToolsException(f"error: cannot write {outfile}")


def get_multiple_outfile(outfile, framenum):
    return f"{outfile}-{framenum:03d}.pnm"


def process_file(
    infile,
    outfile,
    pix_fmt,
    width,
    height,
    multiple,
    engine,
    swap_rb,
    high_bits,
    brightness,
    logfd,
    debug,
):
    info = rawtools_formats.get_format_by_name(pix_fmt)
    # formats without a decode path are read as the fallback format
    bpp = info["bpp"]
    if info["path"] is None:
        bpp = rawtools_formats.get_format_by_name(rawtools_rgb.FALLBACK_FORMAT)["bpp"]
    framenum = 0 if multiple else None
    data, width, height = read_raw_data(
        infile, framenum, width, height, bpp, logfd, debug
    )
    if debug >= 0:
        print(
            f"info: image size: {width}x{height}, bits per pixel: {bpp}, "
            f"format: {info['description']}",
            file=logfd,
        )
    outfiles = []
    while data is not None:
        rgb, _ = rawtools_rgb.decode(
            info["fourcc"],
            width,
            height,
            data,
            engine=engine,
            swap_rb=swap_rb,
            high_bits=high_bits,
            brightness=brightness,
            logfd=logfd,
            debug=debug,
        )
        cur_outfile = get_multiple_outfile(outfile, framenum) if multiple else outfile
        if debug >= 0:
            print(f"info: writing to file '{cur_outfile}'...", file=logfd)
        write_pnm(cur_outfile, rgb)
        outfiles.append(cur_outfile)
        if not multiple:
            break
        framenum += 1
        data, width, height = read_raw_data(
            infile, framenum, width, height, bpp, logfd, debug
        )
    return outfiles


def get_brightness(value):
    # float multiplier to 8.8 fixed point
    return int(value * 256.0 + 0.5)


def get_options(argv):
    """Generic option parser.

    Args:
        argv: list containing arguments

    Returns:
        Namespace - An argparse.ArgumentParser-generated option object
    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "-v",
        "--version",
        action="store_true",
        dest="version",
        default=False,
        help="Print version",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="count",
        dest="debug",
        default=default_values["debug"],
        help="Increase verbosity (use multiple times for more)",
    )
    parser.add_argument(
        "--quiet",
        action="store_const",
        dest="debug",
        const=-1,
        help="Zero verbosity",
    )
    parser.add_argument(
        "-a",
        "--algorithm",
        action="store",
        type=str,
        dest="algorithm",
        default=default_values["algorithm"],
        metavar="ALGO",
        help='Bayer-to-RGB algorithm (use "-a ?" for a list)',
    )
    parser.add_argument(
        "-b",
        "--brightness",
        action="store",
        type=float,
        dest="brightness",
        default=default_values["brightness"],
        metavar="BRIGHT",
        help="10-bit Bayer brightness multiplier (default: %s)"
        % default_values["brightness"],
    )
    parser.add_argument(
        "-f",
        "--format",
        action="store",
        type=str,
        dest="pix_fmt",
        default=default_values["pix_fmt"],
        metavar="FORMAT",
        help='input pixel format (use "-f ?" for a list, default: %s)'
        % default_values["pix_fmt"],
    )
    parser.add_argument(
        "-g",
        "--high-bits",
        action="store_true",
        dest="high_bits",
        default=default_values["high_bits"],
        help="Use high bits for Bayer RAW 10 data",
    )
    parser.add_argument(
        "-n",
        "--multiple",
        action="store_true",
        dest="multiple",
        default=default_values["multiple"],
        help="Assume multiple input frames, extract several PNM files",
    )

    class ImageSizeAction(argparse.Action):
        def __call__(self, parser, namespace, values, option_string=None):
            try:
                namespace.width, namespace.height = [
                    int(v) for v in values.strip().split("x")
                ]
            except ValueError:
                parser.error(f"bad size: {values}")

    parser.add_argument(
        "-s",
        "--size",
        action=ImageSizeAction,
        dest="size",
        metavar="WxH",
        help="use <width>x<height>",
    )
    parser.add_argument(
        "-w",
        "--swap-rb",
        action="store_true",
        dest="swap_rb",
        default=default_values["swap_rb"],
        help="Swap R and B channels",
    )
    parser.add_argument(
        "--sharpness",
        action="store",
        type=int,
        dest="sharpness",
        default=default_values["sharpness"],
        metavar="SHARPNESS",
        help="gptm sharpness, in [0, %i] (default: %i)"
        % (rawtools_bayer.MAX_SHARPNESS, default_values["sharpness"]),
    )
    parser.add_argument(
        "infile",
        type=str,
        nargs="?",
        default=default_values["infile"],
        metavar="input-file",
        help="input file",
    )
    parser.add_argument(
        "outfile",
        type=str,
        nargs="?",
        default=default_values["outfile"],
        metavar="output-file",
        help="output file",
    )
    parser.set_defaults(width=default_values["width"], height=default_values["height"])
    # do the parsing
    options = parser.parse_args(argv[1:])
    return options


def main(argv):
    # parse options
    options = get_options(argv)
    if options.version:
        print("version: %s" % __version__)
        sys.exit(0)
    if options.algorithm == "?":
        print("Available bayer-to-rgb conversion algorithms:")
        rawtools_bayer.print_algorithms()
        sys.exit(0)
    if options.pix_fmt == "?":
        print("Supported formats:")
        for name in rawtools_formats.list_formats():
            print(name)
        sys.exit(0)
    # print results
    if options.debug > 0:
        print(f"debug: {options}")
    if options.infile is None or options.outfile is None:
        print("error: give input and output files")
        sys.exit(-1)

    try:
        engine = rawtools_bayer.DemosaicEngine(
            sharpness=options.sharpness, debug=options.debug
        )
        if options.algorithm is not None:
            engine.SelectAlgorithm(options.algorithm)
        process_file(
            options.infile,
            options.outfile,
            options.pix_fmt,
            options.width,
            options.height,
            options.multiple,
            engine,
            options.swap_rb,
            options.high_bits,
            get_brightness(options.brightness),
            sys.stdout,
            options.debug,
        )
    except (rawtools_common.RawToolsException, ValueError) as e:
        print(f"{e}")
        sys.exit(-1)


if __name__ == "__main__":
    # at least the CLI program name: (CLI) execution
    main(sys.argv)
