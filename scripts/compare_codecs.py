#!/usr/bin/env python3
"""Compare several image codecs against one reference image.

Thin wrapper around :func:`codec_compare.cli.main` for running from a
source checkout.

Usage:
    python3 scripts/compare_codecs.py -s reference.ppm -c config/codecs/jpeg2000.json
    python3 scripts/compare_codecs.py -s reference.ppm -c config/codecs/jpeg2000.json --dry-run
"""

import sys

from codec_compare.cli import main

if __name__ == "__main__":
    sys.exit(main())
