"""kustomap: dependency graphs for kustomization repositories."""

__version__ = "0.1.0"
