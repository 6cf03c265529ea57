"""Allow ``python -m clout_trust``."""

import sys

from clout_trust.cli import main

if __name__ == "__main__":
    sys.exit(main())
