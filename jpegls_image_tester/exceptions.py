"""
The :py:mod:`jpegls_image_tester.exceptions` module defines the exceptions
raised for operational faults: unreadable reference files, badly sized
buffers and errors reported by the codec.

Validation failures (a decoded picture which differs from its reference) are
*not* reported using exceptions. See
:py:class:`~jpegls_image_tester.validation.ValidationOutcome`.

.. autoexception:: ImageTesterError
    :members:

"""

from textwrap import dedent


__all__ = [
    "ImageTesterError",
    "InvalidAnymapFileError",
    "BufferSizeError",
    "UnsupportedComponentCountError",
    "CodecError",
]


class ImageTesterError(Exception):
    """
    Base class for all operational faults raised by the image tester.
    """

    def __str__(self):
        return self.explain().strip().partition("\n")[0]

    def explain(self):
        """
        Produce a detailed human readable explanation of the failure.

        The first line will be used as a summary when the exception is printed
        using :py:func:`str`.
        """
        raise NotImplementedError()


class InvalidAnymapFileError(ImageTesterError, ValueError):
    """
    Thrown when a reference file is not a valid binary PGM or PPM file.

    Parameters
    ==========
    message : str
        What was wrong with the file.
    filename : str or None
        The file being read, if known.
    """

    def __init__(self, message, filename=None):
        super().__init__(message, filename)
        self.message = message
        self.filename = filename

    def explain(self):
        if self.filename is None:
            return "Invalid portable anymap file: {}".format(self.message)
        else:
            return "Invalid portable anymap file {!r}: {}".format(
                self.filename,
                self.message,
            )


class BufferSizeError(ImageTesterError, ValueError):
    """
    Thrown when a sample buffer's length does not match the size implied by
    the picture dimensions, component count and bit depth.
    """

    def __init__(self, actual_size, expected_size):
        super().__init__(actual_size, expected_size)
        self.actual_size = actual_size
        self.expected_size = expected_size

    def explain(self):
        return dedent(
            """
            Buffer holds {} bytes but {} bytes were expected.

            The buffer length must equal width x height x component count x
            bytes per sample (one byte for depths up to 8 bits, two bytes
            otherwise).
            """
        ).format(self.actual_size, self.expected_size)


class UnsupportedComponentCountError(ImageTesterError, ValueError):
    """
    Thrown when an image has a number of components the requested operation
    cannot handle: a layout transform of anything but a three component
    image, or writing a picture which PGM/PPM cannot hold.
    """

    def __init__(self, component_count, supported_counts=(3,)):
        super().__init__(component_count, supported_counts)
        self.component_count = component_count
        self.supported_counts = tuple(supported_counts)

    def explain(self):
        return "Unsupported component count {} (expected {}).".format(
            self.component_count,
            " or ".join(str(count) for count in self.supported_counts),
        )


class CodecError(ImageTesterError):
    """
    Thrown when the codec reports a failure while encoding or decoding.

    Parameters
    ==========
    operation : str
        Either "encode" or "decode".
    message : str
        The codec's description of the problem.
    """

    def __init__(self, operation, message):
        super().__init__(operation, message)
        self.operation = operation
        self.message = message

    def explain(self):
        return "JPEG-LS {} failed: {}".format(self.operation, self.message)
