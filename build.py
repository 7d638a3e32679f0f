#!/usr/bin/env python3
"""Build the site straight from a checkout: ``python build.py [build options]``."""
from __future__ import annotations

import sys

from gopedia.cli import main

if __name__ == "__main__":
    sys.exit(main(["build", *sys.argv[1:]]))
