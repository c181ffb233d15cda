"""Entry point for `python -m ocmvector`.

Usage:
    python -m ocmvector resolve --root <name:version> --repository <dir>
"""

from __future__ import annotations

from ocmvector.cli import cli

cli()
