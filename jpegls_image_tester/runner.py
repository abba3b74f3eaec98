"""
The :py:mod:`jpegls_image_tester.runner` module drives round-trip tests of
individual reference pictures and of whole directories of them.

Testing one picture in one interleave mode (:py:meth:`ImageTester.check_file`)
proceeds through the following steps, with no retries:

1. Load the reference picture, planarizing a copy of its samples if the
   picture has three components and interleave mode 'none' was requested.
2. Encode, timing the encoder.
3. Write the bitstream next to the reference file (see
   :py:func:`generate_output_filename`) for later inspection.
4. Decode and compare against the *untransformed* reference samples (see
   :py:mod:`jpegls_image_tester.validation`).
   A picture which fails is also exported as a PGM/PPM file (see
   :py:func:`export_decoded_picture`).
5. Print a summary line and return a :py:class:`CheckReport`.

Color pictures are tested in each of the interleave modes in turn
(:py:meth:`ImageTester.check_color_file`), stopping at the first failure.

.. autoclass:: ImageTester
    :members:

.. autoclass:: CheckReport

.. autofunction:: generate_output_filename

.. autofunction:: export_decoded_picture

.. autofunction:: read_anymap_reference_file

"""

import os
import logging
import time

from collections import namedtuple

from jpegls_image_tester.anymap_file import (
    RawImage,
    expected_data_size,
    read_anymap_file,
    write_anymap_file,
)

from jpegls_image_tester.layout import triplet_to_planar

from jpegls_image_tester.codec import (
    InterleaveMode,
    interleave_mode_to_string,
    FrameInfo,
    JpeglsCodec,
    estimated_destination_size,
)

from jpegls_image_tester.validation import validate_by_decoding


__all__ = [
    "CheckReport",
    "COLOR_INTERLEAVE_MODES",
    "MONOCHROME_EXTENSION",
    "COLOR_EXTENSION",
    "DECODED_SUFFIX",
    "generate_output_filename",
    "generate_decoded_filename",
    "export_decoded_picture",
    "read_anymap_reference_file",
    "format_report",
    "ImageTester",
]


MONOCHROME_EXTENSION = ".pgm"
COLOR_EXTENSION = ".ppm"

# Appended to the stem of exported decoded pictures, which the directory walk
# skips
DECODED_SUFFIX = "-decoded"

COLOR_INTERLEAVE_MODES = (
    InterleaveMode.none,
    InterleaveMode.line,
    InterleaveMode.sample,
)
"""The order in which interleave modes are tried for color pictures."""


CheckReport = namedtuple(
    "CheckReport",
    (
        "filename,interleave_mode,original_size,encoded_size,compression_ratio,"
        "encode_duration,decode_duration,passed,reason"
    ),
)
"""
The outcome and measurements of testing one picture in one interleave mode.

Parameters
==========
filename : str
    The reference file tested.
interleave_mode : :py:class:`~jpegls_image_tester.codec.InterleaveMode`
original_size : int
    Size of the reference samples in bytes.
encoded_size : int
    Size of the bitstream in bytes.
compression_ratio : float
    ``original_size / encoded_size``.
encode_duration, decode_duration : float
    Milliseconds.
passed : bool
reason : str or None
    Why validation failed (see
    :py:class:`~jpegls_image_tester.validation.ValidationOutcome`).
"""


def _reraise(error):
    raise error


def generate_output_filename(source_filename, interleave_mode):
    """
    Return the name of the bitstream file written when testing
    ``source_filename`` in the given interleave mode, e.g.
    ``"dir/picture.ppm"`` becomes ``"dir/picture-line.jls"``.
    """
    base_name = os.path.splitext(source_filename)[0]
    return "{}-{}.jls".format(
        base_name,
        interleave_mode_to_string(interleave_mode),
    )


def generate_decoded_filename(source_filename, interleave_mode, component_count):
    """
    Return the name under which a picture which failed validation is
    exported, e.g. ``"dir/picture.ppm"`` becomes
    ``"dir/picture-line-decoded.ppm"``.
    """
    base_name = os.path.splitext(source_filename)[0]
    return "{}-{}{}{}".format(
        base_name,
        interleave_mode_to_string(interleave_mode),
        DECODED_SUFFIX,
        COLOR_EXTENSION if component_count == 3 else MONOCHROME_EXTENSION,
    )


def export_decoded_picture(source_filename, interleave_mode, decoded):
    """
    Write a decoded picture to a PGM or PPM file next to its reference (see
    :py:func:`generate_decoded_filename`).

    Pictures whose data does not agree with their own stream header, or
    which a PGM/PPM file cannot hold, are not exported.

    Returns
    =======
    filename : str or None
        The file written, or None if nothing was exported.
    """
    frame_info = decoded.frame_info
    size = expected_data_size(
        frame_info.width,
        frame_info.height,
        frame_info.component_count,
        frame_info.bits_per_sample,
    )
    if frame_info.component_count not in (1, 3) or len(decoded.data) != size:
        logging.info(
            "Decoded picture for %s cannot be stored as PGM/PPM; not exported",
            source_filename,
        )
        return None

    filename = generate_decoded_filename(
        source_filename, interleave_mode, frame_info.component_count
    )
    write_anymap_file(
        RawImage(
            width=frame_info.width,
            height=frame_info.height,
            bits_per_sample=frame_info.bits_per_sample,
            component_count=frame_info.component_count,
            data=bytes(decoded.data),
        ),
        filename,
    )
    logging.info("Wrote decoded picture to %s", filename)
    return filename


def read_anymap_reference_file(filename, interleave_mode):
    """
    Load a reference picture and prepare the samples to feed to the encoder.

    Returns
    =======
    reference : :py:class:`~jpegls_image_tester.anymap_file.RawImage`
        The picture as stored in the file.
    encoder_input : :py:class:`~jpegls_image_tester.anymap_file.RawImage`
        The same picture, with planar samples if ``interleave_mode`` is
        :py:attr:`~jpegls_image_tester.codec.InterleaveMode.none` and the
        picture has three components. Otherwise identical to ``reference``.
    """
    reference = read_anymap_file(filename)
    logging.info(
        "Loaded %s: %dx%d, %d bit, %d component(s)",
        filename,
        reference.width,
        reference.height,
        reference.bits_per_sample,
        reference.component_count,
    )

    encoder_input = reference
    if interleave_mode == InterleaveMode.none and reference.component_count == 3:
        encoder_input = reference._replace(
            data=triplet_to_planar(
                reference.data,
                reference.width,
                reference.height,
                reference.bits_per_sample,
            )
        )
        logging.debug("Converted %s samples to planar layout", filename)

    return reference, encoder_input


def format_report(report, color=False):
    """
    Format the one-line summary printed after each test.

    Interleave mode names are padded to a common width: 6 characters for
    color pictures (which are tested in all modes) and 4 otherwise.
    """
    return (
        " Info: original size = {}, encoded size = {}, interleave mode = {:{}}, "
        "compression ratio = {:.2g}:1, encode time = {:.4g} ms, "
        "decode time = {:.4g} ms"
    ).format(
        report.original_size,
        report.encoded_size,
        interleave_mode_to_string(report.interleave_mode),
        6 if color else 4,
        report.compression_ratio,
        report.encode_duration,
        report.decode_duration,
    )


class ImageTester:
    """
    Round-trip tester for reference pictures.

    Parameters
    ==========
    codec : :py:class:`~jpegls_image_tester.codec.Codec` or None
        The codec under test. Defaults to a
        :py:class:`~jpegls_image_tester.codec.JpeglsCodec`.
    near_lossless : int
        The NEAR parameter passed to the encoder. Zero (the default) tests
        lossless coding.
    output : callable
        Called with each line of the human readable report. Defaults to
        :py:func:`print`.
    """

    def __init__(self, codec=None, near_lossless=0, output=print):
        self._codec = codec if codec is not None else JpeglsCodec()
        self._near_lossless = near_lossless
        self._output = output

    def check_file(self, filename, interleave_mode=InterleaveMode.none, color=False):
        """
        Encode, persist, decode and validate a single picture in a single
        interleave mode.

        Parameters
        ==========
        filename : str
        interleave_mode : :py:class:`~jpegls_image_tester.codec.InterleaveMode`
        color : bool
            Only affects the formatting of the report line.

        Returns
        =======
        report : :py:class:`CheckReport`

        Raises
        ======
        :py:exc:`OSError`
            If the reference cannot be read or the bitstream cannot be
            written.
        :py:exc:`~jpegls_image_tester.exceptions.ImageTesterError`
            If the reference is malformed or the codec reports an error.
        """
        reference, encoder_input = read_anymap_reference_file(
            filename, interleave_mode
        )

        frame_info = FrameInfo(
            width=encoder_input.width,
            height=encoder_input.height,
            bits_per_sample=encoder_input.bits_per_sample,
            component_count=encoder_input.component_count,
        )
        encoded = bytearray(estimated_destination_size(frame_info))

        start = time.perf_counter()
        encoded_size = self._codec.encode(
            frame_info,
            interleave_mode,
            encoder_input.data,
            encoded,
            near_lossless=self._near_lossless,
        )
        encode_duration = (time.perf_counter() - start) * 1000.0

        del encoded[encoded_size:]

        output_filename = generate_output_filename(filename, interleave_mode)
        with open(output_filename, "wb") as f:
            f.write(encoded)
        logging.info("Wrote %d byte bitstream to %s", encoded_size, output_filename)

        # NB: Validated against the reference samples, never the planarized
        # encoder input.
        outcome = validate_by_decoding(self._codec, encoded, reference.data)
        if not outcome.passed:
            self._output(outcome.reason)
            export_decoded_picture(filename, interleave_mode, outcome.decoded)

        original_size = len(reference.data)
        report = CheckReport(
            filename=filename,
            interleave_mode=InterleaveMode(interleave_mode),
            original_size=original_size,
            encoded_size=encoded_size,
            compression_ratio=float(original_size) / float(encoded_size),
            encode_duration=encode_duration,
            decode_duration=outcome.decode_duration,
            passed=outcome.passed,
            reason=outcome.reason,
        )
        self._output(format_report(report, color))

        return report

    def check_color_file(self, filename):
        """
        Test a color picture in each interleave mode of
        :py:data:`COLOR_INTERLEAVE_MODES` in turn.

        Returns the :py:class:`CheckReport` of the first mode to fail, or that
        of the last mode when all pass. Modes after a failing one are not
        attempted.
        """
        for interleave_mode in COLOR_INTERLEAVE_MODES:
            report = self.check_file(filename, interleave_mode, color=True)
            if not report.passed:
                break
        return report

    def check_directory(self, directory):
        """
        Recursively test every ``.pgm`` (as monochrome) and ``.ppm`` (as
        color) file beneath ``directory``, in sorted order.
        Exported decoded pictures (see :py:data:`DECODED_SUFFIX`) are skipped.

        Returns True if every file passed. Stops at the first failing file
        and returns False.

        Raises
        ======
        :py:exc:`OSError`
            If ``directory`` is not a readable directory.
        """
        if not os.path.isdir(directory):
            raise NotADirectoryError("Not a directory: {!r}".format(directory))

        for dirpath, dirnames, filenames in os.walk(directory, onerror=_reraise):
            dirnames.sort()
            for name in sorted(filenames):
                stem, extension = os.path.splitext(name)
                if extension not in (MONOCHROME_EXTENSION, COLOR_EXTENSION):
                    continue
                if stem.endswith(DECODED_SUFFIX):
                    continue

                filename = os.path.join(dirpath, name)
                self._output("Checking file: {}".format(filename))
                if extension == MONOCHROME_EXTENSION:
                    report = self.check_file(filename)
                else:
                    report = self.check_color_file(filename)
                self._output(
                    " Status: {}".format("Passed" if report.passed else "Failed")
                )
                if not report.passed:
                    return False

        return True
