"""
The :py:mod:`jpegls_image_tester.codec` module wraps the codec under test
behind a small capability interface, :py:class:`Codec`. The test runners only
ever talk to this interface, which allows them to be exercised with a mock
codec in the test suite.

:py:class:`JpeglsCodec` is the production implementation, built on the CharLS
JPEG-LS library via the ``pyjpegls`` bindings (imported as :py:mod:`jpeg_ls`).

.. autoclass:: InterleaveMode
    :members:

.. autofunction:: interleave_mode_to_string

.. autoclass:: FrameInfo

.. autoclass:: DecodedImage

.. autoclass:: Codec
    :members:

.. autoclass:: JpeglsCodec

"""

import logging

from collections import namedtuple

from enum import IntEnum

from jpegls_image_tester.anymap_file import expected_data_size

from jpegls_image_tester.exceptions import (
    CodecError,
    UnsupportedComponentCountError,
)

from jpegls_image_tester.layout import planar_to_triplet


__all__ = [
    "InterleaveMode",
    "interleave_mode_to_string",
    "FrameInfo",
    "DecodedImage",
    "estimated_destination_size",
    "Codec",
    "JpeglsCodec",
]


class InterleaveMode(IntEnum):
    """
    How the encoder arranges the components of a multi-component picture.
    Values match the JPEG-LS ILV parameter.
    """

    none = 0
    """Each component is coded as a separate plane."""

    line = 1
    """Components are interleaved line by line."""

    sample = 2
    """Components are interleaved pixel by pixel."""


def interleave_mode_to_string(interleave_mode):
    """
    Return the name of an :py:class:`InterleaveMode` as used in reports and
    output filenames ("none", "line" or "sample").
    """
    return InterleaveMode(interleave_mode).name


FrameInfo = namedtuple(
    "FrameInfo",
    "width,height,bits_per_sample,component_count",
)
"""
The frame metadata handed to the encoder.

Parameters
==========
width, height : int
bits_per_sample : int
component_count : int
"""

DecodedImage = namedtuple(
    "DecodedImage",
    "data,frame_info,near_lossless,interleave_mode,destination_size",
)
"""
The result of decoding a bitstream.

Parameters
==========
data : bytes-like
    The decoded samples, always sample-interleaved (i.e. in the same layout
    as the reference file) regardless of the stream's interleave mode.
frame_info : :py:class:`FrameInfo`
    The frame metadata recorded in the stream header.
near_lossless : int
    The NEAR parameter the stream was encoded with. Zero for lossless
    streams.
interleave_mode : :py:class:`InterleaveMode`
    The interleave mode recorded in the stream.
destination_size : int
    The size (in bytes) the stream header says the decoded picture occupies.
"""

# Allowance for markers and table segments on top of the raw sample data
ENCODED_OVERHEAD_BYTES = 1024

SPIFF_HEADER_BYTES = 34


def estimated_destination_size(frame_info):
    """
    Return an upper bound on the size of an encoded bitstream for the given
    frame. Used to size the encoder's destination buffer up front.
    """
    return (
        expected_data_size(
            frame_info.width,
            frame_info.height,
            frame_info.component_count,
            frame_info.bits_per_sample,
        )
        + ENCODED_OVERHEAD_BYTES
        + SPIFF_HEADER_BYTES
    )


class Codec:
    """
    Capability interface for the codec under test.
    """

    def encode(self, frame_info, interleave_mode, source, destination, near_lossless=0):
        """
        Encode a picture.

        Parameters
        ==========
        frame_info : :py:class:`FrameInfo`
        interleave_mode : :py:class:`InterleaveMode`
        source : bytes-like
            The samples to encode. Must be planar when ``interleave_mode`` is
            :py:attr:`InterleaveMode.none` and the picture has more than one
            component, sample-interleaved otherwise.
        destination : bytearray
            Pre-sized buffer (see :py:func:`estimated_destination_size`) into
            which the bitstream is written, starting at offset zero.
        near_lossless : int
            The NEAR parameter. Zero requests lossless coding.

        Returns
        =======
        encoded_size : int
            The number of bytes of ``destination`` which hold the bitstream.

        Raises
        ======
        :py:exc:`~jpegls_image_tester.exceptions.CodecError`
        """
        raise NotImplementedError()

    def decode(self, encoded):
        """
        Decode a bitstream.

        Parameters
        ==========
        encoded : bytes-like

        Returns
        =======
        decoded : :py:class:`DecodedImage`

        Raises
        ======
        :py:exc:`~jpegls_image_tester.exceptions.CodecError`
        """
        raise NotImplementedError()


class JpeglsCodec(Codec):
    """
    A :py:class:`Codec` backed by CharLS (via :py:mod:`jpeg_ls`).

    .. note::

        ``jpeg_ls.encode_buffer`` does not accept a destination buffer. It
        encodes into a buffer of its own, twice the length of the source,
        and the result is then copied into ``destination``. The pre-sized
        destination therefore only bounds the accepted stream size.

        Consequently pictures of fewer than roughly 20 bytes of sample data
        (e.g. a single 16-bit sample) cannot be encoded: the JPEG-LS markers
        alone overflow the binding's buffer and a
        :py:exc:`~jpegls_image_tester.exceptions.CodecError` is raised.
    """

    def __init__(self):
        # Imported here so that the rest of the package (and its test suite)
        # may be used without the codec bindings installed.
        import jpeg_ls

        self._jpeg_ls = jpeg_ls

    def encode(self, frame_info, interleave_mode, source, destination, near_lossless=0):
        try:
            encoded = self._jpeg_ls.encode_buffer(
                bytes(source),
                rows=frame_info.height,
                columns=frame_info.width,
                samples_per_pixel=frame_info.component_count,
                bits_stored=frame_info.bits_per_sample,
                lossy_error=near_lossless,
                interleave_mode=int(interleave_mode),
            )
        except (RuntimeError, ValueError) as e:
            raise CodecError("encode", str(e))

        if len(encoded) > len(destination):
            raise CodecError(
                "encode",
                "encoded stream ({} bytes) does not fit in the {} byte "
                "destination buffer".format(len(encoded), len(destination)),
            )

        destination[: len(encoded)] = encoded
        logging.debug(
            "Encoded %d bytes (%s interleave, NEAR=%d)",
            len(encoded),
            interleave_mode_to_string(interleave_mode),
            near_lossless,
        )
        return len(encoded)

    def decode(self, encoded):
        try:
            data, header = self._jpeg_ls.decode_buffer(bytes(encoded))
        except (RuntimeError, ValueError) as e:
            raise CodecError("decode", str(e))

        frame_info = FrameInfo(
            width=header["width"],
            height=header["height"],
            bits_per_sample=header["bits_per_sample"],
            component_count=header["components"],
        )
        interleave_mode = InterleaveMode(header["interleave_mode"])
        destination_size = expected_data_size(
            frame_info.width,
            frame_info.height,
            frame_info.component_count,
            frame_info.bits_per_sample,
        )

        # Planar streams decode to planar buffers; regroup into the reference
        # file's layout. Wrongly sized output is passed through untouched for
        # the validator to report.
        if (
            interleave_mode == InterleaveMode.none
            and frame_info.component_count > 1
            and len(data) == destination_size
        ):
            if frame_info.component_count != 3:
                raise UnsupportedComponentCountError(frame_info.component_count)
            data = planar_to_triplet(
                data,
                frame_info.width,
                frame_info.height,
                frame_info.bits_per_sample,
            )

        return DecodedImage(
            data=data,
            frame_info=frame_info,
            near_lossless=header["allowed_lossy_error"],
            interleave_mode=interleave_mode,
            destination_size=destination_size,
        )
