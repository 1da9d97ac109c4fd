"""Allow running the package as a module: python -m state_relayer"""

import sys

from state_relayer.cli import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
