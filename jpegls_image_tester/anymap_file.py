"""
The :py:mod:`jpegls_image_tester.anymap_file` module contains functions for
reading and writing raw (binary) portable anymap files. These are the
reference pictures consumed by the image tester.

Two variants are supported:

* ``P5`` (PGM): single component (grayscale) pictures.
* ``P6`` (PPM): three component (color) pictures with samples interleaved
  per pixel.

Samples deeper than 8 bits are stored big-endian on disk (as required by the
Netpbm format) but are held in memory as little-endian 16-bit words, which is
the layout the codec expects.

.. autofunction:: read_anymap_file

.. autofunction:: write_anymap_file

The above are wrappers around the following which operate on open files:

.. autofunction:: read_anymap

.. autofunction:: write_anymap

.. autoclass:: RawImage

"""

from collections import namedtuple

import numpy as np

from jpegls_image_tester.exceptions import (
    InvalidAnymapFileError,
    BufferSizeError,
    UnsupportedComponentCountError,
)


__all__ = [
    "RawImage",
    "bytes_per_sample",
    "sample_dtype",
    "expected_data_size",
    "read_anymap",
    "read_anymap_file",
    "write_anymap",
    "write_anymap_file",
]


RawImage = namedtuple(
    "RawImage",
    "width,height,bits_per_sample,component_count,data",
)
"""
A decoded reference picture.

Parameters
==========
width, height : int
    The dimensions of the picture.
bits_per_sample : int
    The sample bit depth (1 to 16).
component_count : int
    1 for grayscale, 3 for color.
data : bytes
    All samples in scan order, sample-interleaved for color pictures. One byte
    per sample for depths up to 8 bits, otherwise two (little-endian) bytes.
"""

MAGIC_COMPONENT_COUNTS = {
    b"P5": 1,
    b"P6": 3,
}

COMPONENT_COUNT_MAGICS = {count: magic for magic, count in MAGIC_COMPONENT_COUNTS.items()}

WHITESPACE = b" \t\r\n\x0b\x0c"


def bytes_per_sample(bits_per_sample):
    """
    The number of bytes used to hold one sample of the given bit depth.
    """
    return 1 if bits_per_sample <= 8 else 2


def sample_dtype(bits_per_sample):
    """
    Return the :py:mod:`numpy` dtype used to view an in-memory sample buffer
    of the given bit depth.
    """
    return np.dtype(np.uint8) if bits_per_sample <= 8 else np.dtype("<u2")


def expected_data_size(width, height, component_count, bits_per_sample):
    """
    The length (in bytes) of the sample buffer for a picture with the given
    format.
    """
    return width * height * component_count * bytes_per_sample(bits_per_sample)


def _read_header_token(file, filename):
    """
    Read the next whitespace-delimited token from a PNM header, skipping
    comments. Consumes exactly one whitespace character after the token.
    """
    token = b""
    while True:
        char = file.read(1)
        if char == b"":
            if token:
                return token
            raise InvalidAnymapFileError("unexpected end of header", filename)
        elif char == b"#" and not token:
            while char not in (b"\n", b"\r", b""):
                char = file.read(1)
        elif char in WHITESPACE:
            if token:
                return token
        else:
            token += char


def _read_header_integer(file, name, filename):
    token = _read_header_token(file, filename)
    try:
        value = int(token)
    except ValueError:
        raise InvalidAnymapFileError(
            "{} is not an integer ({!r})".format(name, token),
            filename,
        )
    if value <= 0:
        raise InvalidAnymapFileError(
            "{} must be positive (got {})".format(name, value),
            filename,
        )
    return value


def read_anymap(file, filename=None):
    """
    Read a binary PGM or PPM picture.

    Parameters
    ==========
    file : :py:class:`file`
        A file open for binary reading.
    filename : str or None
        Used only in error messages.

    Returns
    =======
    image : :py:class:`RawImage`

    Raises
    ======
    :py:exc:`~jpegls_image_tester.exceptions.InvalidAnymapFileError`
    """
    magic = file.read(2)
    if magic not in MAGIC_COMPONENT_COUNTS:
        raise InvalidAnymapFileError(
            "unsupported magic number {!r} (expected P5 or P6)".format(magic),
            filename,
        )
    component_count = MAGIC_COMPONENT_COUNTS[magic]

    width = _read_header_integer(file, "width", filename)
    height = _read_header_integer(file, "height", filename)
    max_value = _read_header_integer(file, "maxval", filename)
    if max_value > 0xFFFF:
        raise InvalidAnymapFileError(
            "maxval must be at most 65535 (got {})".format(max_value),
            filename,
        )
    bits_per_sample = max_value.bit_length()

    size = expected_data_size(width, height, component_count, bits_per_sample)
    data = file.read(size)
    if len(data) != size:
        raise InvalidAnymapFileError(
            "expected {} bytes of sample data, found {}".format(size, len(data)),
            filename,
        )

    if bits_per_sample > 8:
        # Big-endian on disk, little-endian in memory
        data = np.frombuffer(data, dtype=">u2").astype("<u2").tobytes()

    return RawImage(width, height, bits_per_sample, component_count, data)


def read_anymap_file(filename):
    """
    Read a binary PGM or PPM picture from the named file.

    Returns
    =======
    image : :py:class:`RawImage`
    """
    with open(filename, "rb") as f:
        return read_anymap(f, filename)


def write_anymap(image, file):
    """
    Write a picture as a binary PGM (1 component) or PPM (3 components) file.

    Parameters
    ==========
    image : :py:class:`RawImage`
    file : :py:class:`file`
        A file open for binary writing.

    Raises
    ======
    :py:exc:`~jpegls_image_tester.exceptions.UnsupportedComponentCountError`
        If the picture does not have 1 or 3 components.
    :py:exc:`~jpegls_image_tester.exceptions.BufferSizeError`
        If ``image.data`` does not match the picture's dimensions and depth.
        Nothing is written in either case.
    """
    if image.component_count not in COMPONENT_COUNT_MAGICS:
        raise UnsupportedComponentCountError(
            image.component_count, sorted(COMPONENT_COUNT_MAGICS)
        )

    size = expected_data_size(
        image.width, image.height, image.component_count, image.bits_per_sample
    )
    if len(image.data) != size:
        raise BufferSizeError(len(image.data), size)

    data = image.data
    if image.bits_per_sample > 8:
        data = np.frombuffer(data, dtype="<u2").astype(">u2").tobytes()

    file.write(
        "{}\n{} {}\n{}\n".format(
            COMPONENT_COUNT_MAGICS[image.component_count].decode("ascii"),
            image.width,
            image.height,
            (1 << image.bits_per_sample) - 1,
        ).encode("ascii")
    )
    file.write(data)


def write_anymap_file(image, filename):
    """
    Write a picture to the named file. See :py:func:`write_anymap`.
    """
    with open(filename, "wb") as f:
        write_anymap(image, f)
