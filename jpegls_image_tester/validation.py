"""
The :py:mod:`jpegls_image_tester.validation` module decodes an encoded
bitstream and checks the result against the reference picture it was encoded
from.

Two checks are made, in order:

1. The decoded picture must be exactly the same size (in bytes) as the
   reference. A difference here indicates the picture format (dimensions,
   depth or component count) did not survive the round trip, so no sample
   values are compared.
2. For lossless streams every byte must match. For near-lossless streams
   (NEAR > 0) every sample must lie within NEAR of its reference value.

Failures are returned as a :py:class:`ValidationOutcome`, not raised.

.. autofunction:: validate_by_decoding

.. autoclass:: ValidationOutcome

"""

import logging
import time

from collections import namedtuple

import numpy as np

from jpegls_image_tester.anymap_file import sample_dtype


__all__ = [
    "ValidationOutcome",
    "SIZE_MISMATCH",
    "VALUE_MISMATCH",
    "BOUND_EXCEEDED",
    "validate_by_decoding",
    "sample_errors",
    "describe_differences",
]


SIZE_MISMATCH = "Pixel data size doesn't match"
VALUE_MISMATCH = "Pixel data value doesn't match"
BOUND_EXCEEDED = "Pixel data error exceeds near-lossless bound"


ValidationOutcome = namedtuple(
    "ValidationOutcome",
    "passed,reason,decode_duration,decoded",
)
"""
The result of :py:func:`validate_by_decoding`.

Parameters
==========
passed : bool
reason : str or None
    One of :py:data:`SIZE_MISMATCH`, :py:data:`VALUE_MISMATCH` or
    :py:data:`BOUND_EXCEEDED` when ``passed`` is False, otherwise None.
decode_duration : float
    Time taken by the decoder, in milliseconds.
decoded : :py:class:`~jpegls_image_tester.codec.DecodedImage`
    The decoder's output, kept so that failing pictures can be exported.
"""


def sample_errors(decoded, original, bits_per_sample):
    """
    Return a numpy array of absolute per-sample differences between two
    equally sized sample buffers.
    """
    dtype = sample_dtype(bits_per_sample)
    # NB: Widen before subtracting to avoid unsigned wrap-around
    return np.abs(
        np.frombuffer(decoded, dtype=dtype).astype(np.int32)
        - np.frombuffer(original, dtype=dtype).astype(np.int32)
    )


def describe_differences(decoded, original, bits_per_sample):
    """
    Produce a one-line summary of the differences between a decoded picture
    and its reference, e.g. "12 samples (4.7%) differ, maximum error 3".
    """
    errors = sample_errors(decoded, original, bits_per_sample)
    count = int(np.count_nonzero(errors))
    if count == 0:
        return "Identical"

    return "{} sample{} ({:.1f}%) differ{}, maximum error {}".format(
        count,
        "s" if count != 1 else "",
        (count * 100.0) / errors.size,
        "s" if count == 1 else "",
        int(errors.max()),
    )


def validate_by_decoding(codec, encoded, original):
    """
    Decode ``encoded`` and compare the result with ``original``.

    Parameters
    ==========
    codec : :py:class:`~jpegls_image_tester.codec.Codec`
    encoded : bytes-like
        The bitstream to decode.
    original : bytes-like
        The untransformed (sample-interleaved) reference samples.

    Returns
    =======
    outcome : :py:class:`ValidationOutcome`

    Raises
    ======
    :py:exc:`~jpegls_image_tester.exceptions.CodecError`
        If the stream cannot be decoded at all.
    """
    start = time.perf_counter()
    decoded = codec.decode(encoded)
    decode_duration = (time.perf_counter() - start) * 1000.0

    if len(decoded.data) != len(original):
        logging.info(
            "Decoded %d bytes (header claims %d) but reference holds %d",
            len(decoded.data),
            decoded.destination_size,
            len(original),
        )
        return ValidationOutcome(False, SIZE_MISMATCH, decode_duration, decoded)

    bits_per_sample = decoded.frame_info.bits_per_sample

    if decoded.near_lossless == 0:
        if bytes(decoded.data) != bytes(original):
            logging.info(
                "Lossless decode differs from reference: %s",
                describe_differences(decoded.data, original, bits_per_sample),
            )
            return ValidationOutcome(False, VALUE_MISMATCH, decode_duration, decoded)
    else:
        errors = sample_errors(decoded.data, original, bits_per_sample)
        if errors.size and int(errors.max()) > decoded.near_lossless:
            logging.info(
                "Near-lossless decode (NEAR=%d) out of bounds: %s",
                decoded.near_lossless,
                describe_differences(decoded.data, original, bits_per_sample),
            )
            return ValidationOutcome(False, BOUND_EXCEEDED, decode_duration, decoded)

    return ValidationOutcome(True, None, decode_duration, decoded)
