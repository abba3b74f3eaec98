r"""
.. _jpegls-image-tester:

``jpegls-image-tester``
=======================

A command-line utility which checks that a JPEG-LS codec round-trips a
directory of reference pictures.

Usage
-----

Every ``.pgm`` (grayscale) and ``.ppm`` (color) file beneath the given
directory is encoded, decoded and compared with the original. Color pictures
are tested with each interleave mode (``none``, ``line`` and ``sample``)::

    $ jpegls-image-tester conformance/
    Checking file: conformance/test16.pgm
     Info: original size = 131072, encoded size = 51389, interleave mode = none, compression ratio = 2.6:1, encode time = 3.161 ms, decode time = 2.897 ms
     Status: Passed
    Checking file: conformance/test8.ppm
     Info: original size = 196608, encoded size = 102666, interleave mode = none  , compression ratio = 1.9:1, encode time = 4.52 ms, decode time = 4.105 ms
     Info: original size = 196608, encoded size = 102697, interleave mode = line  , compression ratio = 1.9:1, encode time = 4.397 ms, decode time = 4.011 ms
     Info: original size = 196608, encoded size = 102697, interleave mode = sample, compression ratio = 1.9:1, encode time = 4.688 ms, decode time = 4.347 ms
     Status: Passed

Each bitstream is also written next to its reference file, named
``<name>-<interleave mode>.jls``. Existing files of the same name are
overwritten.

Testing stops at the first picture which fails to round-trip and the command
exits with a non-zero status. The decoded version of the failing picture is
written next to it as ``<name>-<interleave mode>-decoded.pgm`` (or ``.ppm``).
Such files are skipped by later runs. Errors such as unreadable files or
codec failures also stop the run.

Exactly one directory may be given. If it is omitted, the usage message is
printed and the command exits with status 1. Any further positional arguments
are rejected by :py:mod:`argparse`, which prints an error to stderr and exits
with status 2.

By default lossless coding is tested. Near-lossless coding may be tested
using ``--near-lossless``/``-n``, in which case decoded samples must lie
within the given bound of the reference rather than match exactly.


Arguments
---------

The complete set of arguments can be listed using ``--help``

.. program-output:: jpegls-image-tester --help

"""

import sys
import logging
import traceback

from argparse import ArgumentParser

from jpegls_image_tester import __version__

from jpegls_image_tester.runner import ImageTester


MAX_NEAR_LOSSLESS = 255


def near_lossless_bound(value):
    near_lossless = int(value)
    if not 0 <= near_lossless <= MAX_NEAR_LOSSLESS:
        raise ValueError(near_lossless)
    return near_lossless


def make_parser():
    parser = ArgumentParser(
        description="""
            Check a JPEG-LS codec round-trips every PGM and PPM picture in a
            directory.
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s {}".format(__version__),
    )

    parser.add_argument(
        "directory",
        # NB: Optional so that a missing directory can be reported with our
        # own usage message and exit status.
        nargs="?",
        help="""
            The directory to (recursively) search for .pgm and .ppm reference
            pictures.
        """,
    )

    parser.add_argument(
        "--near-lossless",
        "-n",
        type=near_lossless_bound,
        default=0,
        metavar="NEAR",
        help="""
            Encode near-losslessly, permitting each decoded sample to differ
            from the reference by up to NEAR (0-{}). (Default: %(default)s,
            i.e. lossless.)
        """.format(
            MAX_NEAR_LOSSLESS
        ),
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="""
            Show additional status information during execution. Give twice
            for debugging output. Full Python stack traces are shown for
            unexpected failures.
        """,
    )

    return parser


def parse_args(*args, **kwargs):
    """
    Parse a set of command line arguments. Returns a :py:mod:`argparse`
    ``args`` object with the following fields:

    * directory (str or None): The directory to test.
    * near_lossless (int): The NEAR parameter to encode with.
    * verbose (int): The verbosity level.
    """
    return make_parser().parse_args(*args, **kwargs)


def main(*args, **kwargs):
    parser = make_parser()
    args = parser.parse_args(*args, **kwargs)

    if args.directory is None:
        parser.print_usage(sys.stdout)
        return 1

    log_level = logging.WARNING
    if args.verbose >= 2:
        log_level = logging.DEBUG
    elif args.verbose >= 1:
        log_level = logging.INFO
    logging.basicConfig(level=log_level)

    try:
        tester = ImageTester(near_lossless=args.near_lossless)
        passed = tester.check_directory(args.directory)
    except Exception as e:
        sys.stdout.flush()
        if args.verbose >= 1:
            traceback.print_exc()
        print("Unexpected failure: {}".format(e))
        return 1

    return 0 if passed else 1


if __name__ == "__main__":
    sys.exit(main())
