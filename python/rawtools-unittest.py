#!/usr/bin/env python3

"""rawtools-unittest.py: shared rawtools unittest code.

Operation:
$ ./rawtools-*_unittest.py  # run all the tests
$ ./rawtools-*_unittest.py --list_tests  # list all available tests
$ ./rawtools-*_unittest.py --filter <filter>
where:
  <filter> := <test_filter_item> [":" <test_filter_item>]*
  <test_filter_item> := <test_function>.<test_name>
  <test_function> := <string> | "*"
  <test_name> := <string> | "*"

Examples:
```
$ ./rawtools-bayer_unittest.py --filter testBay2RGB8:testAlgorithms.gptm*
$ ./rawtools-rgb_unittest.py --filter *.UYVY*
```

Test modules are also collected by pytest, in which case no filter is
used.
"""

import argparse
import fnmatch
import importlib
import numpy as np
import sys
import unittest

rawtools_common = importlib.import_module("rawtools-common")

# set by main() when running a test module as a script
LIST_TESTS = False
FILTER = None


class TestCase(unittest.TestCase):
    def getTestCases(self, function_name, test_case_list):
        if LIST_TESTS:
            print(f" {function_name}.")
            for test_case in test_case_list:
                print(f"  {function_name}.{test_case['name']}")
            self.skipTest("list test")

        return self.filterTestCases(function_name, test_case_list, FILTER)

    def filterTestCases(self, function_name, test_case_list, filter_string):
        if not filter_string:
            return test_case_list

        # each filter item is of the form TestFunction.TestName, supports '*'
        matched_names = set()
        for filt in filter_string.split(":"):
            if "." not in filt:
                continue
            func_pat, case_pat = filt.split(".", 1)
            if not fnmatch.fnmatch(function_name, func_pat):
                continue
            for test_case in test_case_list:
                if fnmatch.fnmatch(test_case["name"], case_pat):
                    matched_names.add(test_case["name"])
        return [
            test_case
            for test_case in test_case_list
            if test_case["name"] in matched_names
        ]

    # function to compare 2 RGB images (height, width, 3)
    @classmethod
    def compareRGB(cls, rgb, expected_rgb, label, absolute_tolerance=0):
        assert rgb.shape == expected_rgb.shape, (
            f"error on {label} case: wrong shape ({rgb.shape} != {expected_rgb.shape})"
        )
        np.testing.assert_allclose(
            rgb.astype(np.int32),
            np.asarray(expected_rgb).astype(np.int32),
            atol=absolute_tolerance,
            err_msg=f"error on {label} case",
        )

    # function to check that every pixel of an RGB image has the same value
    @classmethod
    def compareUniformRGB(cls, rgb, expected_pixel, label):
        expected_rgb = np.empty_like(rgb)
        expected_rgb[:, :] = expected_pixel
        cls.compareRGB(rgb, expected_rgb, label)

    # function to get the warnings of a type from a decode status
    @classmethod
    def getWarnings(cls, status, wtype):
        return rawtools_common.get_warnings(status, wtype)


def main(argv):
    global FILTER
    global LIST_TESTS

    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--list_tests",
        action="store_true",
        dest="list_tests",
        default=False,
        help="List Tests",
    )
    parser.add_argument(
        "--filter",
        dest="filter",
        default=None,
        metavar="filter",
        help="Filter String",
    )

    options, unknown_options = parser.parse_known_args(argv[1:])
    FILTER = options.filter
    LIST_TESTS = options.list_tests
    # clean sys.argv before passing to unittest
    sys.argv = [argv[0]] + unknown_options
    unittest.main(module="__main__")
