"""
Pytest configuration for the rollerderby unit tests.

The modules under src/ are imported by their bare names (clients, metadata,
rollout, ...), the same way main.py runs them from a checkout.
"""

import os
import sys

ROOT_DIR = os.path.dirname(__file__)
SRC_DIR = os.path.join(ROOT_DIR, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)
