#!/usr/bin/env python3

"""rawtools-bayer_unittest.py: rawtools bayer unittest.

# runme
# $ ./rawtools-bayer_unittest.py
"""

import importlib
import io
import numpy as np
import sys

rawtools_common = importlib.import_module("rawtools-common")
rawtools_bayer = importlib.import_module("rawtools-bayer")
rawtools_unittest = importlib.import_module("rawtools-unittest")


# GRBG plane with a different value in every sample
#   G0 R  G0 R
#   B  G1 B  G1
BAYER_4x4 = np.array(
    [
        [10, 20, 30, 40],
        [50, 60, 70, 80],
        [90, 100, 110, 120],
        [130, 140, 150, 160],
    ],
    dtype=np.uint8,
)

# flat 6x6 plane with a brighter G0 sample in the only interior block
BAYER_6x6_PEAK = np.full((6, 6), 100, dtype=np.uint8)
BAYER_6x6_PEAK[2, 2] = 120


def get_flat_rgb(height, width, value):
    return np.full((height, width, 3), value, dtype=np.uint8)


def get_peak_rgb(pixels):
    rgb = get_flat_rgb(6, 6, 100)
    for (row, col), pixel in pixels.items():
        rgb[row, col] = pixel
    return rgb


bay2RGB8TestCases = [
    {
        "name": "cottnoip-4x4",
        "algorithm": "cottnoip",
        "bayer": BAYER_4x4,
        "rgb": np.array(
            [
                [[20, 10, 50], [20, 30, 70], [40, 30, 70], [40, 80, 70]],
                [[100, 60, 50], [100, 60, 70], [120, 80, 70], [120, 80, 70]],
                [[100, 90, 130], [100, 110, 150], [120, 110, 150], [120, 160, 150]],
                [[100, 140, 130], [100, 140, 150], [120, 160, 150], [120, 160, 150]],
            ],
            dtype=np.uint8,
        ),
    },
    {
        "name": "horip-4x4",
        "algorithm": "horip",
        "bayer": BAYER_4x4,
        "rgb": np.array(
            [
                [[20, 10, 50], [20, 20, 60], [30, 30, 70], [40, 30, 70]],
                [[20, 10, 50], [20, 60, 60], [30, 30, 70], [40, 80, 70]],
                [[100, 90, 130], [100, 100, 140], [110, 110, 150], [120, 110, 150]],
                [[100, 90, 130], [100, 140, 140], [110, 110, 150], [120, 160, 150]],
            ],
            dtype=np.uint8,
        ),
    },
    {
        "name": "cott-4x4",
        "algorithm": "cott",
        "bayer": BAYER_4x4,
        "rgb": np.array(
            [
                [[20, 35, 50], [20, 45, 70], [40, 55, 70], [40, 80, 70]],
                [[100, 75, 50], [100, 85, 70], [120, 95, 70], [120, 80, 70]],
                [[100, 115, 130], [100, 125, 150], [120, 135, 150], [120, 160, 150]],
                [[100, 140, 130], [100, 140, 150], [120, 160, 150], [120, 160, 150]],
            ],
            dtype=np.uint8,
        ),
    },
    {
        "name": "ip-4x4",
        "algorithm": "ip",
        "bayer": BAYER_4x4,
        "rgb": np.array(
            [
                [[20, 10, 50], [20, 33, 60], [30, 30, 70], [40, 55, 70]],
                [[60, 53, 50], [60, 60, 60], [70, 70, 70], [80, 80, 70]],
                [[100, 90, 90], [100, 100, 100], [110, 110, 110], [120, 116, 110]],
                [[100, 115, 130], [100, 140, 140], [110, 136, 150], [120, 160, 150]],
            ],
            dtype=np.uint8,
        ),
    },
    {
        "name": "gptm-4x4",
        "algorithm": "gptm",
        "bayer": BAYER_4x4,
        "rgb": np.array(
            [
                [[20, 10, 50], [20, 10, 50], [40, 30, 70], [40, 30, 70]],
                [[20, 60, 50], [20, 60, 50], [40, 80, 70], [40, 80, 70]],
                [[100, 90, 130], [100, 90, 130], [120, 110, 150], [120, 110, 150]],
                [[100, 140, 130], [100, 140, 130], [120, 160, 150], [120, 160, 150]],
            ],
            dtype=np.uint8,
        ),
    },
    {
        "name": "gptm-6x6-peak",
        "algorithm": "gptm",
        "bayer": BAYER_6x6_PEAK,
        "rgb": get_peak_rgb(
            {
                (2, 2): (145, 120, 150),
                (2, 3): (100, 105, 100),
                (3, 2): (100, 105, 100),
                (3, 3): (88, 100, 87),
            }
        ),
    },
    {
        "name": "gptm_fast-6x6-peak",
        "algorithm": "gptm_fast",
        "bayer": BAYER_6x6_PEAK,
        "rgb": get_peak_rgb(
            {
                (2, 2): (120, 120, 120),
                (2, 3): (100, 105, 100),
                (3, 2): (100, 105, 100),
                (3, 3): (95, 100, 95),
            }
        ),
    },
    {
        "name": "gptm-8x8-flat",
        "algorithm": "gptm",
        "bayer": np.full((8, 8), 77, dtype=np.uint8),
        "rgb": get_flat_rgb(8, 8, 77),
    },
    {
        "name": "ip-8x8-flat",
        "algorithm": "ip",
        "bayer": np.full((8, 8), 77, dtype=np.uint8),
        "rgb": get_flat_rgb(8, 8, 77),
    },
    {
        "name": "cott-2x2",
        "algorithm": "cott",
        "bayer": np.array([[10, 20], [30, 40]], dtype=np.uint8),
        "rgb": np.array(
            [
                [[20, 25, 30], [20, 40, 30]],
                [[20, 40, 30], [20, 40, 30]],
            ],
            dtype=np.uint8,
        ),
    },
]


class MainTest(rawtools_unittest.TestCase):
    def testListAlgorithms(self):
        expected_list = [
            ("horip", True, False),
            ("ip", True, False),
            ("cott", True, False),
            ("cottnoip", True, True),
            ("gptm_fast", True, False),
            ("gptm", True, True),
        ]
        self.assertEqual(expected_list, rawtools_bayer.list_algorithms())
        self.assertEqual(expected_list, rawtools_bayer.DemosaicEngine.ListAlgorithms())

    def testPrintAlgorithms(self):
        logfd = io.StringIO()
        rawtools_bayer.print_algorithms(logfd)
        lines = logfd.getvalue().splitlines()
        self.assertEqual(6, len(lines))
        self.assertEqual("\tcottnoip (8-bit,10-bit)", lines[3])
        self.assertEqual("\thorip (8-bit)", lines[0])

    def testDefaultAlgorithms(self):
        engine = rawtools_bayer.DemosaicEngine()
        self.assertEqual("gptm", engine.algorithm8)
        self.assertEqual(rawtools_bayer.bay2rgb_gptm, engine.algo8)
        self.assertEqual("cottnoip", engine.algorithm10)
        self.assertEqual(rawtools_bayer.bay2rgb_cottnoip10, engine.algo10)
        self.assertEqual(rawtools_bayer.DEFAULT_SHARPNESS, engine.sharpness)

    def testSelectAlgorithm(self):
        engine = rawtools_bayer.DemosaicEngine()
        engine.SelectAlgorithm("ip")
        self.assertEqual(rawtools_bayer.bay2rgb_ip, engine.algo8)
        self.assertIsNone(engine.algo10)
        # unknown names do not change the current selection
        with self.assertRaises(rawtools_common.UnknownAlgorithmException):
            engine.SelectAlgorithm("nonexistent")
        self.assertEqual("ip", engine.algorithm8)
        self.assertEqual(rawtools_bayer.bay2rgb_ip, engine.algo8)
        self.assertIsNone(engine.algo10)
        # 10-bit decode without a 10-bit kernel
        with self.assertRaises(rawtools_common.UnsupportedDepthException):
            engine.Bay2RGB10(np.zeros((4, 4), dtype=np.uint16))
        engine.SelectAlgorithm("gptm")
        self.assertEqual(rawtools_bayer.bay2rgb_gptm10, engine.algo10)

    def testSetSharpness(self):
        engine = rawtools_bayer.DemosaicEngine()
        engine.SetSharpness(0)
        self.assertEqual(0, engine.sharpness)
        engine.SetSharpness(rawtools_bayer.MAX_SHARPNESS)
        self.assertEqual(rawtools_bayer.MAX_SHARPNESS, engine.sharpness)
        for sharpness in (-1, rawtools_bayer.MAX_SHARPNESS + 1):
            with self.assertRaises(ValueError):
                engine.SetSharpness(sharpness)
        # invalid values are not stored
        self.assertEqual(rawtools_bayer.MAX_SHARPNESS, engine.sharpness)

    def testGetGptmWeights(self):
        self.assertEqual(
            {"wrg": 0, "wbg": 0, "wgr": 0, "wbr": 0, "wgb": 0, "wrb": 0},
            rawtools_bayer.get_gptm_weights(0),
        )
        self.assertEqual(
            {"wrg": 576, "wbg": 640, "wgr": 480, "wbr": 768, "wgb": 480, "wrb": 672},
            rawtools_bayer.get_gptm_weights(32768),
        )

    def testBay2RGB8(self):
        """Bay2RGB8 test."""
        function_name = "testBay2RGB8"
        for test_case in self.getTestCases(function_name, bay2RGB8TestCases):
            print(f"...running \"{function_name}.{test_case['name']}\"")
            engine = rawtools_bayer.DemosaicEngine()
            engine.SelectAlgorithm(test_case["algorithm"])
            rgb = engine.Bay2RGB8(test_case["bayer"])
            self.compareRGB(rgb, test_case["rgb"], test_case["name"])

    def testGreenSamplesPreserved(self):
        # known green samples are kept at their own location
        rng = np.random.default_rng(0)
        bay = rng.integers(0, 256, size=(8, 10), dtype=np.uint8)
        for name in ("horip", "ip", "cottnoip", "gptm_fast", "gptm"):
            print(f"...running \"testGreenSamplesPreserved.{name}\"")
            rgb = rawtools_bayer.ALGORITHMS[name]["algo8"](bay)
            np.testing.assert_array_equal(
                bay[0::2, 0::2], rgb[0::2, 0::2, 1], err_msg=f"error on {name} G0"
            )
            np.testing.assert_array_equal(
                bay[1::2, 1::2], rgb[1::2, 1::2, 1], err_msg=f"error on {name} G1"
            )
        # cott output is 0.5-displaced: it only keeps the green samples of a
        # checkerboard with a single green value
        bay = np.where(
            (np.add.outer(np.arange(8), np.arange(10)) % 2) == 0, 128, 0
        ).astype(np.uint8)
        bay[0::2, 1::2] = rng.integers(0, 256, size=(4, 5), dtype=np.uint8)
        bay[1::2, 0::2] = rng.integers(0, 256, size=(4, 5), dtype=np.uint8)
        for name in rawtools_bayer.ALGORITHMS:
            rgb = rawtools_bayer.ALGORITHMS[name]["algo8"](bay)
            np.testing.assert_array_equal(
                bay[0::2, 0::2], rgb[0::2, 0::2, 1], err_msg=f"error on {name} G0"
            )
            np.testing.assert_array_equal(
                bay[1::2, 1::2], rgb[1::2, 1::2, 1], err_msg=f"error on {name} G1"
            )

    def testBorders(self):
        # minimal images produce defined output in every pixel
        rng = np.random.default_rng(1)
        for height, width in ((2, 2), (4, 4), (2, 6), (6, 2), (6, 6)):
            bay8 = rng.integers(0, 256, size=(height, width), dtype=np.uint8)
            bay10 = rng.integers(0, 1024, size=(height, width), dtype=np.uint16)
            for name, entry in rawtools_bayer.ALGORITHMS.items():
                for bpp in (3, 4):
                    rgb = entry["algo8"](bay8, bpp=bpp)
                    self.assertEqual((height, width, bpp), rgb.shape)
                    self.assertEqual(np.uint8, rgb.dtype)
                    if bpp == 4:
                        np.testing.assert_array_equal(0, rgb[:, :, 3])
                        np.testing.assert_array_equal(
                            entry["algo8"](bay8, bpp=3), rgb[:, :, :3]
                        )
                    if entry["algo10"] is not None:
                        rgb = entry["algo10"](bay10, bpp=bpp)
                        self.assertEqual((height, width, bpp), rgb.shape)

    def testInvalidPlane(self):
        for shape in ((3, 4), (4, 3), (0, 0), (1, 2)):
            with self.assertRaises(rawtools_common.InvalidGeometryException):
                rawtools_bayer.bay2rgb_cottnoip(np.zeros(shape, dtype=np.uint8))
        with self.assertRaises(rawtools_common.InvalidGeometryException):
            rawtools_bayer.bay2rgb_gptm(np.zeros((4,), dtype=np.uint8))

    def testSharpnessZeroIsBilinear(self):
        # gptm with zero weights matches ip on the interior blocks
        rng = np.random.default_rng(2)
        bay = rng.integers(0, 256, size=(10, 12), dtype=np.uint8)
        rgb_gptm = rawtools_bayer.bay2rgb_gptm(bay, sharpness=0)
        rgb_ip = rawtools_bayer.bay2rgb_ip(bay)
        np.testing.assert_array_equal(rgb_ip[2:-2, 2:-2], rgb_gptm[2:-2, 2:-2])

    def testBay2RGB10(self):
        # 10-bit kernels discard the 2 LSB
        bay10 = BAYER_4x4.astype(np.uint16) * 4 + 3
        engine = rawtools_bayer.DemosaicEngine()
        rgb = engine.Bay2RGB10(bay10)
        self.compareRGB(rgb, bay2RGB8TestCases[0]["rgb"], "cottnoip10")
        # gptm10 clips the interpolated components to 255 before the >> 2,
        # while the raw samples keep their full range
        engine.SelectAlgorithm("gptm")
        rgb = engine.Bay2RGB10(np.full((6, 6), 1023, dtype=np.uint16))
        expected_rgb = np.full((6, 6, 3), 255, dtype=np.uint8)
        expected_rgb[2:4, 2:4] = [
            [[63, 255, 63], [255, 63, 63]],
            [[63, 63, 255], [63, 255, 63]],
        ]
        self.compareRGB(rgb, expected_rgb, "gptm10-saturated")
        # border blocks use the raw samples only
        rgb = engine.Bay2RGB10(np.full((8, 8), 400, dtype=np.uint16))
        self.compareUniformRGB(rgb[:2], (100, 100, 100), "gptm10-flat-border")
        self.compareRGB(
            rgb[2:4, 2:4],
            np.array(
                [[[63, 100, 63], [100, 63, 63]], [[63, 63, 100], [63, 100, 63]]],
                dtype=np.uint8,
            ),
            "gptm10-flat-interior",
        )
        # samples below 256 match the 8-bit kernel, shifted by 2
        rng = np.random.default_rng(5)
        bay = rng.integers(0, 256, size=(8, 10), dtype=np.uint8)
        self.compareRGB(
            rawtools_bayer.bay2rgb_gptm10(bay.astype(np.uint16)),
            rawtools_bayer.bay2rgb_gptm(bay) >> 2,
            "gptm10-8bit",
        )

    def testBay2RGB10OutOfRange(self):
        # out-of-range samples are clipped, not wrapped
        logfd = io.StringIO()
        engine = rawtools_bayer.DemosaicEngine(logfd=logfd)
        rgb = engine.Bay2RGB10(np.full((4, 4), 2000, dtype=np.uint16))
        self.compareUniformRGB(rgb, (255, 255, 255), "cottnoip10")
        self.assertIn("warn:", logfd.getvalue())

    def testIndependentEngines(self):
        engine0 = rawtools_bayer.DemosaicEngine()
        engine1 = rawtools_bayer.DemosaicEngine(sharpness=0)
        engine1.SelectAlgorithm("cottnoip")
        self.assertEqual("gptm", engine0.algorithm8)
        self.assertEqual(rawtools_bayer.DEFAULT_SHARPNESS, engine0.sharpness)
        rgb0 = engine0.Bay2RGB8(BAYER_6x6_PEAK)
        rgb1 = engine1.Bay2RGB8(BAYER_6x6_PEAK)
        self.assertFalse(np.array_equal(rgb0, rgb1))


if __name__ == "__main__":
    rawtools_unittest.main(sys.argv)
