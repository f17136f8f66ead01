#!/usr/bin/env python3

"""rawtools-yuvcommon_unittest.py: rawtools yuvcommon unittest.

# runme
# $ ./rawtools-yuvcommon_unittest.py
"""

import importlib
import numpy as np
import sys

rawtools_common = importlib.import_module("rawtools-common")
rawtools_yuvcommon = importlib.import_module("rawtools-yuvcommon")
rawtools_unittest = importlib.import_module("rawtools-unittest")


yuvToRGBTestCases = [
    {
        "name": "black",
        "yuv": (16, 128, 128),
        "rgb": (0, 0, 0),
    },
    {
        "name": "white",
        "yuv": (235, 128, 128),
        "rgb": (255, 255, 255),
    },
    {
        "name": "grey",
        "yuv": (126, 128, 128),
        # 298 * 110 + 128 = 32908 -> 128
        "rgb": (128, 128, 128),
    },
    {
        "name": "red",
        "yuv": (81, 90, 240),
        # r: (298 * 65 + 409 * 112 + 128) >> 8 = 255 (clipped)
        # g: (298 * 65 + 100 * 38 - 208 * 112 + 128) >> 8 = 0
        # b: (298 * 65 - 516 * 38 + 128) >> 8 = -1 -> 0
        "rgb": (255, 0, 0),
    },
    {
        "name": "clip-low",
        "yuv": (0, 0, 0),
        "rgb": (0, 135, 0),
    },
    {
        "name": "clip-high",
        "yuv": (255, 255, 255),
        "rgb": (255, 125, 255),
    },
]


chromaSubsampleReverseTestCases = [
    {
        "name": "420",
        "chroma_subsample": rawtools_common.ChromaSubsample.chroma_420,
        "width": 4,
        "height": 4,
        "input": np.array([[1, 2], [3, 4]], dtype=np.uint8),
        "output": np.array(
            [[1, 1, 2, 2], [1, 1, 2, 2], [3, 3, 4, 4], [3, 3, 4, 4]], dtype=np.uint8
        ),
    },
    {
        "name": "422",
        "chroma_subsample": rawtools_common.ChromaSubsample.chroma_422,
        "width": 4,
        "height": 2,
        "input": np.array([[1, 2], [3, 4]], dtype=np.uint8),
        "output": np.array([[1, 1, 2, 2], [3, 3, 4, 4]], dtype=np.uint8),
    },
    {
        "name": "411",
        "chroma_subsample": rawtools_common.ChromaSubsample.chroma_411,
        "width": 8,
        "height": 1,
        "input": np.array([[5, 6]], dtype=np.uint8),
        "output": np.array([[5, 5, 5, 5, 6, 6, 6, 6]], dtype=np.uint8),
    },
    {
        "name": "444",
        "chroma_subsample": rawtools_common.ChromaSubsample.chroma_444,
        "width": 2,
        "height": 2,
        "input": np.array([[1, 2], [3, 4]], dtype=np.uint8),
        "output": np.array([[1, 2], [3, 4]], dtype=np.uint8),
    },
]


class MainTest(rawtools_unittest.TestCase):
    def testYuvToRGB(self):
        """yuv_to_rgb test."""
        function_name = "testYuvToRGB"
        for test_case in self.getTestCases(function_name, yuvToRGBTestCases):
            print(f"...running \"{function_name}.{test_case['name']}\"")
            rgb = rawtools_yuvcommon.yuv_to_rgb(*test_case["yuv"])
            self.assertEqual(
                test_case["rgb"],
                tuple(rgb),
                f"error on test {test_case['name']}",
            )
            # numpy uint8 samples (e.g. read from a plane) give the same result
            rgb = rawtools_yuvcommon.yuv_to_rgb(
                *[np.uint8(value) for value in test_case["yuv"]]
            )
            self.assertEqual(
                test_case["rgb"],
                tuple(rgb),
                f"error on test {test_case['name']} (uint8)",
            )

    def testYuvToRGBArray(self):
        """yuv_to_rgb (numpy) test: same results as the scalar version."""
        y, u, v = np.meshgrid(
            np.arange(0, 256, 15, dtype=np.uint8),
            np.arange(0, 256, 17, dtype=np.uint8),
            np.arange(0, 256, 51, dtype=np.uint8),
            indexing="ij",
        )
        r, g, b = rawtools_yuvcommon.yuv_to_rgb(y, u, v)
        for index in np.ndindex(y.shape):
            expected = rawtools_yuvcommon.yuv_to_rgb(
                int(y[index]), int(u[index]), int(v[index])
            )
            self.assertEqual(
                expected,
                (int(r[index]), int(g[index]), int(b[index])),
                f"error on yuv {y[index]} {u[index]} {v[index]}",
            )

    def testChromaSubsampleReverse(self):
        """chroma_subsample_reverse test."""
        function_name = "testChromaSubsampleReverse"
        for test_case in self.getTestCases(
            function_name, chromaSubsampleReverseTestCases
        ):
            print(f"...running \"{function_name}.{test_case['name']}\"")
            output = rawtools_yuvcommon.chroma_subsample_reverse(
                test_case["input"],
                test_case["height"],
                test_case["width"],
                test_case["chroma_subsample"],
            )
            np.testing.assert_array_equal(
                test_case["output"],
                output,
                err_msg=f"error on test {test_case['name']}",
            )


if __name__ == "__main__":
    rawtools_unittest.main(sys.argv)
