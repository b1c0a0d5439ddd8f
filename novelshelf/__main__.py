"""Module entrypoint for running novelshelf as ``python -m novelshelf``."""

from __future__ import annotations

from novelshelf.cli import main


if __name__ == "__main__":
    main()
