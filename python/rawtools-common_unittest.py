#!/usr/bin/env python3

"""rawtools-common_unittest.py: rawtools common unittest.

# runme
# $ ./rawtools-common_unittest.py
"""

import importlib
import io
import numpy as np
import sys

rawtools_common = importlib.import_module("rawtools-common")
rawtools_unittest = importlib.import_module("rawtools-unittest")


fourccTestCases = [
    {
        "name": "UYVY",
        "chars": ("U", "Y", "V", "Y"),
        "fourcc": 0x59565955,
    },
    {
        "name": "GRBG",
        "chars": ("G", "R", "B", "G"),
        "fourcc": 0x47425247,
    },
    {
        "name": "Y10",
        "chars": ("Y", "1", "0", " "),
        "fourcc": 0x20303159,
    },
]

geometryTestCases = [
    {
        "name": "valid",
        "width": 4,
        "height": 2,
        "factors": (2, 2),
        "valid": True,
    },
    {
        "name": "valid-411",
        "width": 8,
        "height": 3,
        "factors": (4, 1),
        "valid": True,
    },
    {
        "name": "odd-width",
        "width": 5,
        "height": 2,
        "factors": (2, 1),
        "valid": False,
    },
    {
        "name": "odd-height",
        "width": 4,
        "height": 3,
        "factors": (2, 2),
        "valid": False,
    },
    {
        "name": "zero-width",
        "width": 0,
        "height": 2,
        "factors": (1, 1),
        "valid": False,
    },
    {
        "name": "negative-height",
        "width": 2,
        "height": -2,
        "factors": (1, 1),
        "valid": False,
    },
]


class MainTest(rawtools_unittest.TestCase):
    def testFourcc(self):
        """v4l2_fourcc/fourcc_to_str test."""
        function_name = "testFourcc"
        for test_case in self.getTestCases(function_name, fourccTestCases):
            print(f"...running \"{function_name}.{test_case['name']}\"")
            fourcc = rawtools_common.v4l2_fourcc(*test_case["chars"])
            self.assertEqual(
                test_case["fourcc"], fourcc, f"error on test {test_case['name']}"
            )
            self.assertEqual(
                "".join(test_case["chars"]), rawtools_common.fourcc_to_str(fourcc)
            )

    def testImageGeometry(self):
        """ImageGeometry.check test."""
        function_name = "testImageGeometry"
        for test_case in self.getTestCases(function_name, geometryTestCases):
            print(f"...running \"{function_name}.{test_case['name']}\"")
            geometry = rawtools_common.ImageGeometry(
                test_case["width"], test_case["height"]
            )
            if test_case["valid"]:
                geometry.check(*test_case["factors"])
            else:
                with self.assertRaises(rawtools_common.InvalidGeometryException):
                    geometry.check(*test_case["factors"])

    def testStride(self):
        geometry = rawtools_common.ImageGeometry(4, 2)
        self.assertEqual(8, geometry.get_stride(8))
        geometry = rawtools_common.ImageGeometry(4, 2, stride=12)
        self.assertEqual(12, geometry.get_stride(8))
        geometry = rawtools_common.ImageGeometry(4, 2, stride=6)
        with self.assertRaises(rawtools_common.InvalidGeometryException):
            geometry.get_stride(8)

    def testChromaSubsample(self):
        ChromaSubsample = rawtools_common.ChromaSubsample
        self.assertEqual((2, 2), ChromaSubsample.chroma_420.get_factors())
        self.assertEqual((2, 1), ChromaSubsample.chroma_422.get_factors())
        self.assertEqual((4, 1), ChromaSubsample.chroma_411.get_factors())
        self.assertEqual((1, 1), ChromaSubsample.chroma_444.get_factors())

    def testWarnings(self):
        WarningType = rawtools_common.WarningType
        status = rawtools_common.new_status()
        logfd = io.StringIO()
        rawtools_common.add_warning(
            status, WarningType.out_of_range, "too large", logfd=logfd, row=1, col=2
        )
        rawtools_common.add_warning(
            status, WarningType.bayer_phase, "bad phase", logfd=logfd, debug=-1
        )
        # quiet warnings are recorded, but not printed
        self.assertEqual("warn: too large\n", logfd.getvalue())
        warnings = rawtools_common.get_warnings(status, WarningType.out_of_range)
        self.assertEqual(1, len(warnings))
        self.assertEqual("too large", warnings[0]["message"])
        self.assertEqual((1, 2), (warnings[0]["row"], warnings[0]["col"]))
        self.assertEqual(
            1, len(rawtools_common.get_warnings(status, WarningType.bayer_phase))
        )
        self.assertEqual(
            [], rawtools_common.get_warnings(status, WarningType.unsupported_format)
        )

    def testClipPositive(self):
        arr = np.array([-3, 0, 200, 1023, 1024, 5000], dtype=np.int32)
        np.testing.assert_array_equal(
            [0, 0, 200, 255, 255, 255], rawtools_common.clip_positive(arr, 8)
        )
        np.testing.assert_array_equal(
            [0, 0, 200, 1023, 1023, 1023], rawtools_common.clip_positive(arr, 10)
        )

    def testExceptions(self):
        for exception in (
            rawtools_common.UnknownAlgorithmException,
            rawtools_common.UnsupportedDepthException,
            rawtools_common.InvalidGeometryException,
            rawtools_common.UnknownFormatException,
        ):
            self.assertTrue(issubclass(exception, rawtools_common.RawToolsException))


if __name__ == "__main__":
    rawtools_unittest.main(sys.argv)
