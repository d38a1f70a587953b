from __future__ import annotations

import sys

from gap_fade.cli import main

if __name__ == "__main__":
    sys.exit(main())
