#!/usr/bin/env python3
"""
DMARC Ingest

Command-line entry point for the DMARC ingester when run directly.
"""

import sys
import os

# Add the src directory to the path if running directly from source
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from dmarc_ingest.cli import run

if __name__ == "__main__":
    run()
