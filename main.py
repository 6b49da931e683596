#!/usr/bin/env python3
"""
rollerderby: Compute Engine metadata update & rolling replace tool

- Set a project common metadata key (snapshotting the old metadata first)
- Roll a managed instance group onto a new version with --group

This script supports running directly from a source checkout that uses a
src/ layout by adding the local `src/` directory to sys.path. For production
use, prefer installing the project and using the `rollerderby` console script.
"""

import os
import sys

# Add src/ to path to import modules directly
REPO_ROOT = os.path.dirname(os.path.abspath(__file__))
SRC_PATH = os.path.join(REPO_ROOT, "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from cli import main

if __name__ == "__main__":
    sys.exit(main())
