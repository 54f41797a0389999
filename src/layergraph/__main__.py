"""Allow running as ``python -m layergraph``."""

import sys

from layergraph.cli import main

if __name__ == "__main__":
    sys.exit(main())
