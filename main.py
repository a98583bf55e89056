#!/usr/bin/env python3
"""
VadCondense Entry Point Script

This script runs the command-line interface for condensing audio files.
"""

import sys
from vadcondense.cli import main

if __name__ == "__main__":
    if sys.version_info < (3, 8):
        sys.stderr.write("VadCondense requires Python 3.8 or later.\n")
        sys.exit(1)

    main()
