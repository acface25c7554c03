"""Allow running the CLI with ``python -m dbtable_session``."""

import sys

from dbtable_session.cli import main

if __name__ == "__main__":
    sys.exit(main())
