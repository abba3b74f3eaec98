"""
The JPEG-LS image tester is contained within the
:py:mod:`jpegls_image_tester` module.

The tester is a conformance and regression harness for a JPEG-LS codec. It
walks a directory of reference PGM/PPM files, encodes each one under every
supported interleave mode, decodes the result and checks that the codec is
lossless (or, for near-lossless encodes, that every sample lies within the
configured error bound). Compression ratios and timings are reported along
the way.


Main components
---------------

* A reader and writer for raw portable anymap files
  (:py:mod:`jpegls_image_tester.anymap_file`)
* The pixel layout transform used to feed planar (interleave mode 'none')
  encodes (:py:mod:`jpegls_image_tester.layout`)
* A thin capability interface around the codec itself
  (:py:mod:`jpegls_image_tester.codec`)
* The round-trip validator (:py:mod:`jpegls_image_tester.validation`)
* The per-file and per-directory test runners
  (:py:mod:`jpegls_image_tester.runner`) driven by the
  ``jpegls-image-tester`` command.


Interleave modes and planar input
---------------------------------

Reference files always store color samples interleaved per pixel (R, G, B,
R, G, B, ...). When the encoder is asked to produce a non-interleaved stream
it expects its input to already be split into three contiguous planes, so
the runner planarizes the buffer before encoding. The decoded output is
always compared with the untransformed reference: the codec wrapper returns
decoded pictures in sample-interleaved order regardless of the interleave
mode recorded in the stream.
"""

from jpegls_image_tester.version import __version__
