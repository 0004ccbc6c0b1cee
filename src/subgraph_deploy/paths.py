"""Artifact path conventions for subgraph-deploy."""

from pathlib import Path
from typing import Union

from .constants import MAIN_SUBGRAPH


def get_subgraphs_dir(root: Union[Path, str]) -> Path:
    """
    Get the directory holding manifests and per-market schemas.

    Args:
        root: Subgraph project root

    Returns:
        Absolute path to {root}/subgraphs
    """
    return Path(root).absolute() / "subgraphs"


def get_manifest_path(root: Union[Path, str], subgraph: str) -> Path:
    """Manifest artifact for a variant, e.g. subgraphs/futures.yaml."""
    return get_subgraphs_dir(root) / f"{subgraph}.yaml"


def get_schema_path(root: Union[Path, str], subgraph: str = MAIN_SUBGRAPH) -> Path:
    """Schema document for a variant; the default is the merged main schema."""
    return get_subgraphs_dir(root) / f"{subgraph}.graphql"


def get_generated_dir(root: Union[Path, str], subgraph: str) -> Path:
    """Codegen output directory for a variant."""
    return Path(root).absolute() / "generated" / "subgraphs" / subgraph


def get_build_dir(root: Union[Path, str], network: str, subgraph: str) -> Path:
    """Network-scoped build output directory."""
    return Path(root).absolute() / "build" / network / "subgraphs" / subgraph
