# scripts/run.py
import sys

from orgtree.app.cli import main

if __name__ == "__main__":
    sys.exit(main())
