"""CLI entry point for vizgen.cli module.

Enables execution via: python -m vizgen.cli
"""

from vizgen.cli.recover_jobs import main

if __name__ == "__main__":
    raise SystemExit(main())
