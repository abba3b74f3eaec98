"""
The :py:mod:`jpegls_image_tester.layout` module converts three-component
sample buffers between the sample-interleaved layout used by reference files
(R0 G0 B0 R1 G1 B1 ...) and the planar layout (R0 R1 ... G0 G1 ... B0 B1 ...)
a JPEG-LS encoder expects when asked for interleave mode 'none'.

Samples are one-byte units for depths up to 8 bits and two-byte units
otherwise. Both functions return a new buffer and never modify their input.

.. autofunction:: triplet_to_planar

.. autofunction:: planar_to_triplet

"""

import numpy as np

from jpegls_image_tester.anymap_file import expected_data_size, sample_dtype

from jpegls_image_tester.exceptions import BufferSizeError


__all__ = [
    "triplet_to_planar",
    "planar_to_triplet",
]


COMPONENT_COUNT = 3


def _sample_view(data, width, height, bits_per_sample):
    """
    View 'data' as an array of samples of the appropriate width, checking its
    length is exactly that of a three-component picture.
    """
    expected_size = expected_data_size(
        width, height, COMPONENT_COUNT, bits_per_sample
    )
    if len(data) != expected_size:
        raise BufferSizeError(len(data), expected_size)

    return np.frombuffer(data, dtype=sample_dtype(bits_per_sample))


def triplet_to_planar(data, width, height, bits_per_sample):
    """
    Regroup a sample-interleaved three-component buffer into three contiguous
    planes.

    Component *k* of pixel *i* (at sample offset ``i*3 + k`` in the input)
    ends up at sample offset ``i + k*width*height`` in the output.

    Parameters
    ==========
    data : bytes-like
    width, height : int
    bits_per_sample : int

    Returns
    =======
    planar : bytes
        A new buffer of the same length as ``data``.

    Raises
    ======
    :py:exc:`~jpegls_image_tester.exceptions.BufferSizeError`
        If ``data`` is not exactly ``width*height*3`` samples long.
    """
    samples = _sample_view(data, width, height, bits_per_sample)
    # NB: The transposed view is not contiguous so tobytes() produces a copy
    # in planar order.
    return samples.reshape(width * height, COMPONENT_COUNT).T.tobytes()


def planar_to_triplet(data, width, height, bits_per_sample):
    """
    Inverse of :py:func:`triplet_to_planar`: interleave three contiguous
    planes back into per-pixel sample triplets.
    """
    samples = _sample_view(data, width, height, bits_per_sample)
    return samples.reshape(COMPONENT_COUNT, width * height).T.tobytes()
