"""kustomap command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kustomap`` script).
"""

from kustomap.cli.main import cli

__all__ = ["cli"]
