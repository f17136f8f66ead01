#!/usr/bin/env python3

"""rawtools-formats_unittest.py: rawtools formats unittest.

# runme
# $ ./rawtools-formats_unittest.py
"""

import importlib
import sys

rawtools_common = importlib.import_module("rawtools-common")
rawtools_formats = importlib.import_module("rawtools-formats")
rawtools_unittest = importlib.import_module("rawtools-unittest")

DecodePath = rawtools_formats.DecodePath


formatTestCases = [
    {
        "name": "UYVY",
        "fourcc": 0x59565955,
        "bpp": 16,
        "path": DecodePath.packed_yuv422,
    },
    {
        "name": "NV21",
        "fourcc": 0x3132564E,
        "bpp": 12,
        "path": DecodePath.semiplanar_yuv,
    },
    {
        "name": "YUV420P",
        "fourcc": 0x32315559,
        "bpp": 12,
        "path": DecodePath.planar_yuv,
    },
    {
        "name": "SGRBG8",
        "fourcc": 0x47425247,
        "bpp": 8,
        "path": DecodePath.bayer8,
    },
    {
        "name": "SGRBG10",
        "fourcc": 0x30314142,
        "bpp": 16,
        "path": DecodePath.bayer10,
    },
    {
        "name": "RGB565X",
        "fourcc": 0x52424752,
        "bpp": 16,
        "path": DecodePath.rgb,
    },
    {
        "name": "Y10",
        "fourcc": 0x20303159,
        "bpp": 16,
        "path": DecodePath.mono,
    },
    {
        "name": "MJPEG",
        "fourcc": 0x47504A4D,
        "bpp": 0,
        "path": None,
    },
]


class MainTest(rawtools_unittest.TestCase):
    def testFormatLookup(self):
        """get_format_by_name/get_format_info test."""
        function_name = "testFormatLookup"
        for test_case in self.getTestCases(function_name, formatTestCases):
            print(f"...running \"{function_name}.{test_case['name']}\"")
            info = rawtools_formats.get_format_by_name(test_case["name"])
            self.assertEqual(test_case["name"], info["name"])
            self.assertEqual(test_case["fourcc"], info["fourcc"])
            self.assertEqual(test_case["bpp"], info["bpp"])
            self.assertEqual(test_case["path"], info["path"])
            # numeric lookup gets the same entry
            self.assertEqual(info, rawtools_formats.get_format_info(test_case["fourcc"]))
            self.assertEqual(
                test_case["fourcc"], rawtools_formats.get_fourcc(test_case["name"])
            )

    def testUnknownFormat(self):
        self.assertIsNone(rawtools_formats.get_format_info(0))
        for name in ("FOO", "uyvy", "UYV", "UYVY (16"):
            with self.assertRaises(rawtools_common.UnknownFormatException):
                rawtools_formats.get_format_by_name(name)

    def testFormatTable(self):
        fourccs = set()
        for name in rawtools_formats.list_formats():
            info = rawtools_formats.PIX_FORMATS[name]
            # the name is the description prefix
            self.assertEqual(name, info["description"].split(" ")[0])
            # fourcc codes are unique
            self.assertNotIn(info["fourcc"], fourccs, f"error on {name}")
            fourccs.add(info["fourcc"])
            if info["path"] in (
                DecodePath.packed_yuv422,
                DecodePath.semiplanar_yuv,
                DecodePath.planar_yuv,
            ):
                self.assertIn(info["cb_pos"], (0, 1, 2, 3), f"error on {name}")
            if info["path"] in (DecodePath.semiplanar_yuv, DecodePath.planar_yuv):
                self.assertIn("subsample", info, f"error on {name}")
            if info["path"] in (DecodePath.bayer8, DecodePath.bayer10):
                self.assertIn("phase_supported", info, f"error on {name}")
                self.assertIn("shift", info, f"error on {name}")
        # only GRBG bayer phase is supported
        self.assertEqual(
            ["SGRBG8", "SGRBG10", "SGRBG12"],
            [
                name
                for name, info in rawtools_formats.PIX_FORMATS.items()
                if info.get("phase_supported", False)
            ],
        )


if __name__ == "__main__":
    rawtools_unittest.main(sys.argv)
