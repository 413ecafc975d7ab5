"""Module entrypoint for running mdpilot as ``python -m mdpilot``."""

from __future__ import annotations

from mdpilot.cli import main


if __name__ == "__main__":
    main()
