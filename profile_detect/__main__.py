"""Module entry point: python -m profile_detect ..."""

from __future__ import annotations

from profile_detect.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
