#!/usr/bin/env python3

"""rawtools-rgb_unittest.py: rawtools rgb (decode) unittest.

# runme
# $ ./rawtools-rgb_unittest.py
"""

import importlib
import io
import numpy as np
import sys

rawtools_common = importlib.import_module("rawtools-common")
rawtools_yuvcommon = importlib.import_module("rawtools-yuvcommon")
rawtools_formats = importlib.import_module("rawtools-formats")
rawtools_bayer = importlib.import_module("rawtools-bayer")
rawtools_rgb = importlib.import_module("rawtools-rgb")
rawtools_unittest = importlib.import_module("rawtools-unittest")

DecodePath = rawtools_formats.DecodePath
WarningType = rawtools_common.WarningType

YUV_FORMATS = [
    name
    for name in rawtools_formats.list_formats()
    if rawtools_formats.PIX_FORMATS[name]["path"]
    in (DecodePath.packed_yuv422, DecodePath.semiplanar_yuv, DecodePath.planar_yuv)
]


def get_constant_yuv_buffer(pix_fmt, width, height, y, cb, cr):
    info = rawtools_formats.get_format_by_name(pix_fmt)
    cb_pos = info["cb_pos"]
    if info["path"] == DecodePath.packed_yuv422:
        group = [0] * 4
        group[info["y_pos"]] = y
        group[info["y_pos"] + 2] = y
        group[cb_pos] = cb
        group[(cb_pos + 2) % 4] = cr
        return bytes(group) * (width // 2 * height)
    hsub, vsub = info["subsample"].get_factors()
    chroma_size = (width // hsub) * (height // vsub)
    luma = bytes([y]) * (width * height)
    if info["path"] == DecodePath.semiplanar_yuv:
        pair = bytes([cb, cr]) if cb_pos == 0 else bytes([cr, cb])
        return luma + pair * chroma_size
    first, second = (cb, cr) if cb_pos == 0 else (cr, cb)
    return luma + bytes([first]) * chroma_size + bytes([second]) * chroma_size


decodeTestCases = [
    # packed YUV
    {
        "name": "UYVY-black-white",
        "pix_fmt": "UYVY",
        "width": 2,
        "height": 1,
        "input": b"\x80\x10\x80\xeb",
        "rgb": [[[0, 0, 0], [255, 255, 255]]],
    },
    {
        "name": "YUYV-black-white",
        "pix_fmt": "YUYV",
        "width": 2,
        "height": 1,
        "input": b"\x10\x80\xeb\x80",
        "rgb": [[[0, 0, 0], [255, 255, 255]]],
    },
    {
        "name": "UYVY-stride",
        "pix_fmt": "UYVY",
        "width": 2,
        "height": 2,
        "stride": 6,
        "input": b"\x80\x10\x80\xeb\xff\xff\x80\xeb\x80\x10",
        "rgb": [[[0, 0, 0], [255, 255, 255]], [[255, 255, 255], [0, 0, 0]]],
    },
    # chroma planes use half the luma stride
    {
        "name": "YUV420P-stride",
        "pix_fmt": "YUV420P",
        "width": 2,
        "height": 2,
        "stride": 4,
        "input": b"\x10\xeb\xff\xff\xeb\x10\xff\xff" + b"\x80\xff" + b"\x80\xff",
        "rgb": [[[0, 0, 0], [255, 255, 255]], [[255, 255, 255], [0, 0, 0]]],
    },
    # the interleaved chroma plane uses the luma stride
    {
        "name": "NV12-stride",
        "pix_fmt": "NV12",
        "width": 2,
        "height": 2,
        "stride": 4,
        "input": b"\x10\xeb\xff\xff\xeb\x10\xff\xff" + b"\x80\x80\xff\xff",
        "rgb": [[[0, 0, 0], [255, 255, 255]], [[255, 255, 255], [0, 0, 0]]],
    },
    {
        "name": "SGRBG10-stride",
        "pix_fmt": "SGRBG10",
        "width": 2,
        "height": 2,
        "stride": 6,
        "input": b"\x64\x00\x64\x00\xff\xff\x64\x00\x64\x00",
        "rgb": [[[25, 25, 25], [25, 25, 25]], [[25, 25, 25], [25, 25, 25]]],
    },
    # planar YUV: one chroma pair per 2x2 luma block
    {
        "name": "YUV420P-chroma-placement",
        "pix_fmt": "YUV420P",
        "width": 4,
        "height": 2,
        "input": bytes([126] * 8) + bytes([128, 90]) + bytes([128, 240]),
        "rgb": [
            [[128, 128, 128], [128, 128, 128], [255, 52, 51], [255, 52, 51]],
            [[128, 128, 128], [128, 128, 128], [255, 52, 51], [255, 52, 51]],
        ],
    },
    # greyscale
    {
        "name": "GREY",
        "pix_fmt": "GREY",
        "width": 2,
        "height": 1,
        "input": b"\x00\x7f",
        "rgb": [[[0, 0, 0], [127, 127, 127]]],
    },
    {
        "name": "Y10",
        "pix_fmt": "Y10",
        "width": 2,
        "height": 1,
        "input": b"\xff\x03\x00\x02",
        "rgb": [[[255, 255, 255], [128, 128, 128]]],
    },
    {
        "name": "Y12",
        "pix_fmt": "Y12",
        "width": 2,
        "height": 1,
        "input": b"\xff\x0f\x10\x00",
        "rgb": [[[255, 255, 255], [1, 1, 1]]],
    },
    # packed RGB
    {
        "name": "RGB332",
        "pix_fmt": "RGB332",
        "width": 2,
        "height": 1,
        "input": b"\xff\x1c",
        "rgb": [[[224, 224, 192], [0, 224, 0]]],
    },
    {
        "name": "RGB555",
        "pix_fmt": "RGB555",
        "width": 2,
        "height": 1,
        "input": b"\x00\x7c\xe0\x03",
        "rgb": [[[248, 0, 0], [0, 248, 0]]],
    },
    {
        "name": "RGB565",
        "pix_fmt": "RGB565",
        "width": 2,
        "height": 1,
        "input": b"\x00\xf8\x1f\x00",
        "rgb": [[[248, 0, 0], [0, 0, 248]]],
    },
    {
        "name": "RGB555X",
        "pix_fmt": "RGB555X",
        "width": 2,
        "height": 1,
        "input": b"\x7c\x00\x03\xe0",
        "rgb": [[[248, 0, 0], [0, 248, 0]]],
    },
    {
        "name": "RGB565X",
        "pix_fmt": "RGB565X",
        "width": 2,
        "height": 1,
        "input": b"\xf8\x00\x07\xe0",
        "rgb": [[[248, 0, 0], [0, 252, 0]]],
    },
    {
        "name": "RGB24",
        "pix_fmt": "RGB24",
        "width": 2,
        "height": 1,
        "input": b"\x01\x02\x03\x04\x05\x06",
        "rgb": [[[1, 2, 3], [4, 5, 6]]],
    },
    {
        "name": "BGR24",
        "pix_fmt": "BGR24",
        "width": 2,
        "height": 1,
        "input": b"\x01\x02\x03\x04\x05\x06",
        "rgb": [[[3, 2, 1], [6, 5, 4]]],
    },
    {
        "name": "BGR24-swap",
        "pix_fmt": "BGR24",
        "width": 2,
        "height": 1,
        "swap_rb": True,
        "input": b"\x01\x02\x03\x04\x05\x06",
        "rgb": [[[1, 2, 3], [4, 5, 6]]],
    },
    {
        "name": "BGR32",
        "pix_fmt": "BGR32",
        "width": 1,
        "height": 1,
        "input": b"\x01\x02\x03\x04",
        "rgb": [[[3, 2, 1]]],
    },
    {
        "name": "RGB32",
        "pix_fmt": "RGB32",
        "width": 1,
        "height": 1,
        "input": b"\x01\x02\x03\x04",
        "rgb": [[[2, 3, 4]]],
    },
    {
        "name": "RGB32-swap",
        "pix_fmt": "RGB32",
        "width": 1,
        "height": 1,
        "swap_rb": True,
        "input": b"\x01\x02\x03\x04",
        "rgb": [[[4, 3, 2]]],
    },
]


class MainTest(rawtools_unittest.TestCase):
    def testDecode(self):
        """decode test."""
        function_name = "testDecode"
        for test_case in self.getTestCases(function_name, decodeTestCases):
            print(f"...running \"{function_name}.{test_case['name']}\"")
            rgb, status = rawtools_rgb.decode(
                test_case["pix_fmt"],
                test_case["width"],
                test_case["height"],
                test_case["input"],
                swap_rb=test_case.get("swap_rb", False),
                stride=test_case.get("stride", None),
            )
            expected_rgb = np.array(test_case["rgb"], dtype=np.uint8)
            self.compareRGB(rgb, expected_rgb, test_case["name"])
            self.assertEqual([], status["warnings"])

    def testConstantYUV(self):
        # a constant (Y, Cb, Cr) buffer decodes into a uniform image
        function_name = "testConstantYUV"
        test_case_list = [{"name": name} for name in YUV_FORMATS]
        width, height = 8, 4
        for test_case in self.getTestCases(function_name, test_case_list):
            print(f"...running \"{function_name}.{test_case['name']}\"")
            for y, cb, cr in ((81, 90, 240), (126, 128, 128), (200, 30, 60)):
                buffer = get_constant_yuv_buffer(
                    test_case["name"], width, height, y, cb, cr
                )
                rgb, status = rawtools_rgb.decode(
                    test_case["name"], width, height, buffer
                )
                expected_pixel = rawtools_yuvcommon.yuv_to_rgb(y, cb, cr)
                self.compareUniformRGB(rgb, expected_pixel, test_case["name"])
                self.assertEqual([], status["warnings"])

    def testYUVFormatList(self):
        self.assertEqual(
            [
                "UYVY",
                "VYUY",
                "YUYV",
                "YVYU",
                "YUV411P",
                "YUV420P",
                "YVU420P",
                "YUV422P",
                "YVU422P",
                "YUV444P",
                "YVU444P",
                "NV12",
                "NV21",
                "NV16",
                "NV61",
            ],
            YUV_FORMATS,
        )

    def testDecodeByFourcc(self):
        buffer = get_constant_yuv_buffer("NV21", 4, 4, 81, 90, 240)
        rgb0, _ = rawtools_rgb.decode("NV21", 4, 4, buffer)
        fourcc = rawtools_common.v4l2_fourcc("N", "V", "2", "1")
        rgb1, _ = rawtools_rgb.decode(fourcc, 4, 4, buffer)
        np.testing.assert_array_equal(rgb0, rgb1)

    def testSwapRB(self):
        buffer = get_constant_yuv_buffer("UYVY", 4, 2, 81, 90, 240)
        rgb, _ = rawtools_rgb.decode("UYVY", 4, 2, buffer)
        swapped_rgb, _ = rawtools_rgb.decode("UYVY", 4, 2, buffer, swap_rb=True)
        np.testing.assert_array_equal(rgb[:, :, ::-1], swapped_rgb)
        # bayer formats too
        bay = np.arange(16, dtype=np.uint8).reshape(4, 4) * 10
        rgb, _ = rawtools_rgb.decode("SGRBG8", 4, 4, bay.tobytes())
        swapped_rgb, _ = rawtools_rgb.decode(
            "SGRBG8", 4, 4, bay.tobytes(), swap_rb=True
        )
        np.testing.assert_array_equal(rgb[:, :, ::-1], swapped_rgb)

    def testFallback(self):
        # unknown and unsupported formats are decoded as UYVY, with a warning
        buffer = b"\x80\x10\x80\xeb"
        expected_rgb = np.array([[[0, 0, 0], [255, 255, 255]]], dtype=np.uint8)
        unknown_fourcc = rawtools_common.v4l2_fourcc("X", "X", "X", "X")
        for pix_fmt in (unknown_fourcc, "MJPEG", "YUV410P"):
            logfd = io.StringIO()
            rgb, status = rawtools_rgb.decode(pix_fmt, 2, 1, buffer, logfd=logfd)
            self.compareRGB(rgb, expected_rgb, f"fallback {pix_fmt}")
            warnings = self.getWarnings(status, WarningType.unsupported_format)
            self.assertEqual(1, len(warnings))
            self.assertEqual("UYVY", status["pix_fmt"])
            self.assertIn("warn:", logfd.getvalue())
        # unknown names are a lookup error
        with self.assertRaises(rawtools_common.UnknownFormatException):
            rawtools_rgb.decode("FOO", 2, 1, buffer)

    def testInvalidGeometry(self):
        for pix_fmt, width, height in (
            ("UYVY", 3, 2),
            ("NV12", 4, 3),
            ("YUV420P", 3, 4),
            ("YUV411P", 6, 2),
            ("SGRBG8", 3, 4),
            ("SGRBG10", 4, 5),
            ("GREY", 0, 4),
        ):
            buffer = bytes(64)
            with self.assertRaises(rawtools_common.InvalidGeometryException):
                rawtools_rgb.decode(pix_fmt, width, height, buffer)
        # short buffers
        for pix_fmt, size in (("UYVY", 15), ("NV12", 23), ("SGRBG10", 31), ("RGB24", 47)):
            with self.assertRaises(rawtools_common.InvalidGeometryException):
                rawtools_rgb.decode(pix_fmt, 4, 4, bytes(size))
        # stride shorter than a row
        with self.assertRaises(rawtools_common.InvalidGeometryException):
            rawtools_rgb.decode("UYVY", 4, 4, bytes(64), stride=6)

    def testBayer8(self):
        rng = np.random.default_rng(3)
        bay = rng.integers(0, 256, size=(6, 8), dtype=np.uint8)
        buffer = bytearray(bay.tobytes())
        rgb, status = rawtools_rgb.decode("SGRBG8", 8, 6, buffer)
        # default 8-bit algorithm is gptm
        np.testing.assert_array_equal(rawtools_bayer.bay2rgb_gptm(bay), rgb)
        self.assertEqual([], status["warnings"])
        # the input buffer is not modified
        self.assertEqual(bay.tobytes(), bytes(buffer))
        # other engines
        engine = rawtools_bayer.DemosaicEngine()
        engine.SelectAlgorithm("cott")
        rgb, _ = rawtools_rgb.decode("SGRBG8", 8, 6, buffer, engine=engine)
        np.testing.assert_array_equal(rawtools_bayer.bay2rgb_cott(bay), rgb)

    def testBayerPhase(self):
        buffer = bytes(range(16))
        for pix_fmt, num_warnings in (("SGRBG8", 0), ("SBGGR8", 1), ("SGBRG8", 1)):
            _, status = rawtools_rgb.decode(pix_fmt, 4, 4, buffer, debug=-1)
            warnings = self.getWarnings(status, WarningType.bayer_phase)
            self.assertEqual(num_warnings, len(warnings), f"error on {pix_fmt}")
        _, status = rawtools_rgb.decode("SBGGR16", 4, 4, bytes(32), debug=-1)
        self.assertEqual(1, len(self.getWarnings(status, WarningType.bayer_phase)))

    def testBayer10(self):
        bay = (np.arange(16, dtype=np.uint16).reshape(4, 4) * 60).astype("<u2")
        # SGRBG10 uses the 10 LSB
        rgb, status = rawtools_rgb.decode("SGRBG10", 4, 4, bay.tobytes())
        np.testing.assert_array_equal(rawtools_bayer.bay2rgb_cottnoip10(bay), rgb)
        self.assertEqual([], status["warnings"])
        # high-bits mode uses the 10 MSB
        rgb_high, _ = rawtools_rgb.decode(
            "SGRBG10", 4, 4, (bay << 6).astype("<u2").tobytes(), high_bits=True
        )
        np.testing.assert_array_equal(rgb, rgb_high)
        # SGRBG12 is shifted by 2
        rgb12, _ = rawtools_rgb.decode("SGRBG12", 4, 4, (bay << 2).astype("<u2").tobytes())
        np.testing.assert_array_equal(rgb, rgb12)

    def testBayer10OutOfRange(self):
        bay = np.full((4, 4), 512, dtype="<u2")
        bay[0, 1] = 1024
        bay[2, 3] = 2000
        bay[3, 0] = 65535
        logfd = io.StringIO()
        rgb, status = rawtools_rgb.decode(
            "SGRBG10", 4, 4, bay.tobytes(), logfd=logfd
        )
        warnings = self.getWarnings(status, WarningType.out_of_range)
        self.assertEqual(
            [(0, 1, 1024), (2, 3, 2000), (3, 0, 65535)],
            [(w["row"], w["col"], w["value"]) for w in warnings],
        )
        # one summary line
        self.assertEqual(1, logfd.getvalue().count("warn:"))
        # out-of-range samples are clipped
        self.assertEqual((4, 4, 3), rgb.shape)
        self.assertEqual(255, rgb[0, 1, 0])
        # every occurrence is reported, also on repeated decodes
        _, status = rawtools_rgb.decode("SGRBG10", 4, 4, bay.tobytes(), debug=-1)
        self.assertEqual(3, len(self.getWarnings(status, WarningType.out_of_range)))
        # in-range 12-bit samples do not warn
        bay12 = np.full((4, 4), 4095, dtype="<u2")
        _, status = rawtools_rgb.decode("SGRBG12", 4, 4, bay12.tobytes(), debug=-1)
        self.assertEqual([], self.getWarnings(status, WarningType.out_of_range))

    def testBrightness(self):
        # increasing the brightness never decreases a 10-bit output channel
        rng = np.random.default_rng(4)
        bay10 = rng.integers(0, 1024, size=(6, 6)).astype("<u2")
        previous_rgb = None
        for brightness in (0, 64, 128, 256, 300, 512, 1024, 4096):
            rgb, _ = rawtools_rgb.decode(
                "SGRBG10", 6, 6, bay10.tobytes(), brightness=brightness
            )
            if previous_rgb is not None:
                self.assertTrue(
                    np.all(rgb >= previous_rgb), f"error on SGRBG10 {brightness=}"
                )
            previous_rgb = rgb
        # brightness 0 is black
        rgb, _ = rawtools_rgb.decode("SGRBG10", 6, 6, bay10.tobytes(), brightness=0)
        self.compareUniformRGB(rgb, (0, 0, 0), "brightness-0")
        # 8-bit samples are not scaled
        bay8 = np.zeros((6, 6), dtype=np.uint8)
        bay8[0::2, 0::2] = 200
        bay8[1::2, 1::2] = 100
        expected_rgb = rawtools_bayer.bay2rgb_gptm(bay8)
        for brightness in (0, 128, 256, 512, 4096):
            rgb, status = rawtools_rgb.decode(
                "SGRBG8", 6, 6, bay8.tobytes(), brightness=brightness
            )
            np.testing.assert_array_equal(
                expected_rgb, rgb, f"error on SGRBG8 {brightness=}"
            )
            self.assertEqual([], status["warnings"])

    def testNormalizeBayer(self):
        bay = np.array([[0, 100], [1023, 2048]], dtype=np.uint16)
        normalized, out_of_range = rawtools_rgb.normalize_bayer(bay, 0, 512, 10)
        np.testing.assert_array_equal([[0, 200], [1023, 1023]], normalized)
        self.assertEqual([(1, 1, 2048)], out_of_range)
        # input is not modified
        np.testing.assert_array_equal([[0, 100], [1023, 2048]], bay)
        normalized, out_of_range = rawtools_rgb.normalize_bayer(bay, 2, 256, 10)
        np.testing.assert_array_equal([[0, 25], [255, 512]], normalized)
        self.assertEqual([], out_of_range)

    def testUnsupportedDepth(self):
        # fatal errors happen before any output is written
        engine = rawtools_bayer.DemosaicEngine()
        engine.SelectAlgorithm("ip")
        out = np.full((4, 4, 3), 7, dtype=np.uint8)
        with self.assertRaises(rawtools_common.UnsupportedDepthException):
            rawtools_rgb.decode("SGRBG10", 4, 4, bytes(32), engine=engine, out=out)
        np.testing.assert_array_equal(7, out)
        # 8-bit still works
        rgb, _ = rawtools_rgb.decode("SGRBG8", 4, 4, bytes(16), engine=engine, out=out)
        self.assertIs(out, rgb)
        np.testing.assert_array_equal(0, out)

    def testOutputBuffer(self):
        out = np.zeros((1, 2, 3), dtype=np.uint8)
        rgb, _ = rawtools_rgb.decode("UYVY", 2, 1, b"\x80\x10\x80\xeb", out=out)
        self.assertIs(out, rgb)
        np.testing.assert_array_equal([[[0, 0, 0], [255, 255, 255]]], out)
        with self.assertRaises(rawtools_common.InvalidGeometryException):
            rawtools_rgb.decode(
                "UYVY", 2, 1, b"\x80\x10\x80\xeb", out=np.zeros((2, 2, 3), np.uint8)
            )


if __name__ == "__main__":
    rawtools_unittest.main(sys.argv)
