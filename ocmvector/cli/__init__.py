"""ocmvector command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``ocmvector`` script).
"""

from ocmvector.cli.main import cli

__all__ = ["cli"]
