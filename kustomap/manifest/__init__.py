"""Kustomization discovery, decoding and node construction."""

from kustomap.manifest.classify import CLASSIFICATION_RULES, classify_path
from kustomap.manifest.locator import display_path, find_manifest_paths, is_manifest_path, manifest_directory
from kustomap.manifest.nodes import NodeBuilder, remote_source_url
from kustomap.manifest.parser import parse_manifest

__all__ = [
    "CLASSIFICATION_RULES",
    "NodeBuilder",
    "classify_path",
    "display_path",
    "find_manifest_paths",
    "is_manifest_path",
    "manifest_directory",
    "parse_manifest",
    "remote_source_url",
]
