#!/usr/bin/env python3

"""rawtools-rgbpnm_unittest.py: rawtools rgbpnm unittest.

# runme
# $ ./rawtools-rgbpnm_unittest.py
"""

import cv2
import importlib
import io
import numpy as np
import os
import sys
import tempfile

rawtools_common = importlib.import_module("rawtools-common")
rawtools_bayer = importlib.import_module("rawtools-bayer")
rawtools_rgbpnm = importlib.import_module("rawtools-rgbpnm")
rawtools_unittest = importlib.import_module("rawtools-unittest")


processFileTestCases = [
    {
        "name": "UYVY",
        "pix_fmt": "UYVY",
        "width": 2,
        "height": 1,
        "input": b"\x80\x10\x80\xeb",
        "output": b"P6\n2 1\n255\n\x00\x00\x00\xff\xff\xff",
    },
    {
        "name": "UYVY-padding",
        "pix_fmt": "UYVY",
        "width": 2,
        "height": 2,
        "input": b"\x80\x10\x80\xeb\x00\x00\x80\xeb\x80\x10\x00\x00",
        "output": b"P6\n2 2\n255\n\x00\x00\x00\xff\xff\xff\xff\xff\xff\x00\x00\x00",
    },
    {
        "name": "RGB24-swap",
        "pix_fmt": "RGB24",
        "width": 2,
        "height": 1,
        "swap_rb": True,
        "input": b"\x01\x02\x03\x04\x05\x06",
        "output": b"P6\n2 1\n255\n\x03\x02\x01\x06\x05\x04",
    },
    {
        "name": "GREY",
        "pix_fmt": "GREY",
        "width": 2,
        "height": 2,
        "input": b"\x00\x40\x80\xff",
        "output": b"P6\n2 2\n255\n\x00\x00\x00\x40\x40\x40\x80\x80\x80\xff\xff\xff",
    },
    {
        "name": "SGRBG8-flat",
        "pix_fmt": "SGRBG8",
        "width": 2,
        "height": 2,
        "input": b"\x64\x64\x64\x64",
        "output": b"P6\n2 2\n255\n" + b"\x64" * 12,
    },
    {
        "name": "SGRBG10-brightness",
        "pix_fmt": "SGRBG10",
        "width": 2,
        "height": 2,
        "brightness": 512,
        "input": b"\x64\x00\x64\x00\x64\x00\x64\x00",
        # ((100 * 512) >> 8) >> 2
        "output": b"P6\n2 2\n255\n" + b"\x32" * 12,
    },
]


def get_tmpfile(suffix):
    return tempfile.NamedTemporaryFile(
        prefix="rawtools-rgbpnm_unittest.", suffix=suffix
    ).name


class MainTest(rawtools_unittest.TestCase):
    def testProcessFile(self):
        """process_file test."""
        function_name = "testProcessFile"
        for test_case in self.getTestCases(function_name, processFileTestCases):
            print(f"...running \"{function_name}.{test_case['name']}\"")
            # prepare input file
            infile = get_tmpfile(".bin")
            with open(infile, "wb") as f:
                f.write(test_case["input"])
            outfile = get_tmpfile(".pnm")
            logfd = io.StringIO()
            outfiles = rawtools_rgbpnm.process_file(
                infile,
                outfile,
                test_case["pix_fmt"],
                test_case["width"],
                test_case["height"],
                False,
                rawtools_bayer.DemosaicEngine(logfd=logfd),
                test_case.get("swap_rb", False),
                False,
                test_case.get("brightness", 256),
                logfd,
                0,
            )
            self.assertEqual([outfile], outfiles)
            # read output file
            with open(outfile, "rb") as f:
                output = f.read()
            self.assertEqual(
                test_case["output"],
                output,
                f"error on test {test_case['name']}",
            )
            os.remove(infile)
            os.remove(outfile)

    def testProcessFileMultiple(self):
        # 3 frames of UYVY 2x1
        infile = get_tmpfile(".bin")
        with open(infile, "wb") as f:
            f.write(b"\x80\x10\x80\x10" + b"\x80\xeb\x80\xeb" + b"\x80\x7e\x80\x7e")
        outfile = get_tmpfile("")
        logfd = io.StringIO()
        outfiles = rawtools_rgbpnm.process_file(
            infile, outfile, "UYVY", 2, 1, True, None, False, False, 256, logfd, -1
        )
        self.assertEqual(
            [f"{outfile}-000.pnm", f"{outfile}-001.pnm", f"{outfile}-002.pnm"],
            outfiles,
        )
        for cur_outfile, value in zip(outfiles, (b"\x00", b"\xff", b"\x80")):
            with open(cur_outfile, "rb") as f:
                self.assertEqual(b"P6\n2 1\n255\n" + value * 6, f.read())
            os.remove(cur_outfile)
        os.remove(infile)

    def testReadRawData(self):
        infile = get_tmpfile(".bin")
        with open(infile, "wb") as f:
            f.write(bytes(range(24)))
        logfd = io.StringIO()
        # single frame
        data, width, height = rawtools_rgbpnm.read_raw_data(
            infile, None, 4, 3, 16, logfd, -1
        )
        self.assertEqual((bytes(range(24)), 4, 3), (data, width, height))
        # single frame with 4 bytes of padding per row
        data, width, height = rawtools_rgbpnm.read_raw_data(
            infile, None, 2, 3, 16, logfd, -1
        )
        self.assertEqual(
            bytes(range(0, 4)) + bytes(range(8, 12)) + bytes(range(16, 20)), data
        )
        self.assertIn("warn: too large image file", logfd.getvalue())
        # multiple frames
        frames = []
        framenum = 0
        while True:
            data, _, _ = rawtools_rgbpnm.read_raw_data(
                infile, framenum, 2, 2, 16, logfd, -1
            )
            if data is None:
                break
            frames.append(data)
            framenum += 1
        self.assertEqual(
            [bytes(range(0, 8)), bytes(range(8, 16)), bytes(range(16, 24))], frames
        )
        # too short
        with self.assertRaises(rawtools_common.InvalidGeometryException):
            rawtools_rgbpnm.read_raw_data(infile, None, 4, 4, 16, logfd, -1)
        # size guessing needs a single frame
        with self.assertRaises(rawtools_common.InvalidGeometryException):
            rawtools_rgbpnm.read_raw_data(infile, 0, -1, -1, 16, logfd, -1)
        os.remove(infile)

    def testGuessResolution(self):
        self.assertEqual((176, 144), rawtools_rgbpnm.guess_resolution(176 * 144 * 2, 16))
        self.assertEqual(
            (640, 480), rawtools_rgbpnm.guess_resolution(640 * 480 * 3 // 2, 12)
        )
        self.assertEqual(
            (2592, 1944), rawtools_rgbpnm.guess_resolution(2592 * 1944, 8)
        )
        with self.assertRaises(rawtools_common.InvalidGeometryException):
            rawtools_rgbpnm.guess_resolution(1000, 16)

    def testWritePNM(self):
        rgb = np.array(
            [[[255, 0, 0], [0, 255, 0]], [[0, 0, 255], [10, 20, 30]]], dtype=np.uint8
        )
        # binary PPM
        outfile = get_tmpfile(".ppm")
        rawtools_rgbpnm.write_pnm(outfile, rgb)
        with open(outfile, "rb") as f:
            self.assertEqual(b"P6\n2 2\n255\n" + rgb.tobytes(), f.read())
        os.remove(outfile)
        # other formats use opencv
        outfile = get_tmpfile(".png")
        rawtools_rgbpnm.write_pnm(outfile, rgb)
        bgr = cv2.imread(outfile, cv2.IMREAD_COLOR)
        np.testing.assert_array_equal(rgb, cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))
        os.remove(outfile)

    def testBrightness(self):
        self.assertEqual(256, rawtools_rgbpnm.get_brightness(1.0))
        self.assertEqual(128, rawtools_rgbpnm.get_brightness(0.5))
        self.assertEqual(384, rawtools_rgbpnm.get_brightness(1.5))
        self.assertEqual(0, rawtools_rgbpnm.get_brightness(0.0))

    def testGetOptions(self):
        options = rawtools_rgbpnm.get_options(
            ["rawtools-rgbpnm.py", "-s", "4x2", "-f", "SGRBG10", "-a", "ip", "-g",
             "-w", "-b", "1.5", "in.raw", "out.pnm"]
        )
        self.assertEqual((4, 2), (options.width, options.height))
        self.assertEqual("SGRBG10", options.pix_fmt)
        self.assertEqual("ip", options.algorithm)
        self.assertTrue(options.high_bits)
        self.assertTrue(options.swap_rb)
        self.assertFalse(options.multiple)
        self.assertEqual(1.5, options.brightness)
        self.assertEqual(("in.raw", "out.pnm"), (options.infile, options.outfile))
        # defaults
        options = rawtools_rgbpnm.get_options(["rawtools-rgbpnm.py", "--quiet"])
        self.assertEqual((-1, -1), (options.width, options.height))
        self.assertEqual("UYVY", options.pix_fmt)
        self.assertEqual(-1, options.debug)
        self.assertEqual(rawtools_bayer.DEFAULT_SHARPNESS, options.sharpness)
        self.assertIsNone(options.algorithm)

    def testMain(self):
        infile = get_tmpfile(".bin")
        with open(infile, "wb") as f:
            f.write(b"\x80\x10\x80\xeb")
        outfile = get_tmpfile(".pnm")
        rawtools_rgbpnm.main(
            ["rawtools-rgbpnm.py", "--quiet", "-s", "2x1", infile, outfile]
        )
        with open(outfile, "rb") as f:
            self.assertEqual(b"P6\n2 1\n255\n\x00\x00\x00\xff\xff\xff", f.read())
        # errors exit with -1
        with self.assertRaises(SystemExit) as cm:
            rawtools_rgbpnm.main(
                ["rawtools-rgbpnm.py", "--quiet", "-a", "foo", infile, outfile]
            )
        self.assertEqual(-1, cm.exception.code)
        with self.assertRaises(SystemExit) as cm:
            rawtools_rgbpnm.main(
                ["rawtools-rgbpnm.py", "--quiet", "-f", "FOO", infile, outfile]
            )
        self.assertEqual(-1, cm.exception.code)
        # listings exit with 0
        with self.assertRaises(SystemExit) as cm:
            rawtools_rgbpnm.main(["rawtools-rgbpnm.py", "-a", "?"])
        self.assertEqual(0, cm.exception.code)
        os.remove(infile)
        os.remove(outfile)


if __name__ == "__main__":
    rawtools_unittest.main(sys.argv)
