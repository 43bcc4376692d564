"""Codec comparison harness.

Runs a list of image codecs against one reference image: each codec's
encoder, a shared decoder and a comparison tool, reporting a quality
metric and leaving a diff image per codec.
"""

__version__ = "0.1.0"
