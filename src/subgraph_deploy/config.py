"""
Settings for subgraph-deploy.

Values come from environment variables, with a `.env` file in the subgraph
project root loaded first (existing environment variables win).
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Union

from dotenv import load_dotenv

from .constants import (
    DEFAULT_TEAM,
    HOSTED_IPFS_URL,
    HOSTED_NETWORKS,
    HOSTED_NODE_URL,
    RECORDS_PACKAGE,
)

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Where the subgraph project lives and how to reach the external tools."""

    root: Path = field(default_factory=Path.cwd)

    # graph CLI and hosted service endpoints
    graph_cli: str = "./node_modules/.bin/graph"
    node_url: str = HOSTED_NODE_URL
    ipfs_url: str = HOSTED_IPFS_URL
    team: str = DEFAULT_TEAM

    # Deployment records cache, and where to refresh it from
    records_path: Optional[Path] = None
    records_url: Optional[str] = None

    # package.json of the records package; its version is the default release label
    package_json: Optional[Path] = None

    hosted_networks: List[str] = field(default_factory=lambda: [n.value for n in HOSTED_NETWORKS])

    update_package_command: List[str] = field(
        default_factory=lambda: ["npm", "install", f"{RECORDS_PACKAGE}@latest"]
    )
    prepare_abis_command: List[str] = field(
        default_factory=lambda: ["node", "scripts/helpers/prepare-abis.js"]
    )
    create_contracts_command: List[str] = field(
        default_factory=lambda: ["node", "./scripts/helpers/create-contracts"]
    )

    def __post_init__(self):
        self.root = Path(self.root).absolute()
        if self.records_path is None:
            self.records_path = self.root / "deployments.json"
        if self.package_json is None:
            self.package_json = self.root / "node_modules" / RECORDS_PACKAGE / "package.json"

    @classmethod
    def from_env(
        cls,
        root: Optional[Union[Path, str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            root: Project root; overrides $SUBGRAPH_ROOT
            environ: Mapping to read (defaults to os.environ after loading .env)
        """
        if environ is None:
            env_root = Path(root or os.environ.get("SUBGRAPH_ROOT") or Path.cwd())
            load_dotenv(dotenv_path=env_root / ".env", override=False)
            environ = os.environ

        if root is None:
            root = environ.get("SUBGRAPH_ROOT") or Path.cwd()

        defaults = cls(root=Path(root))
        records_path = environ.get("DEPLOYMENT_RECORDS")
        package_json = environ.get("SYNTHETIX_PACKAGE_JSON")

        return cls(
            root=Path(root),
            graph_cli=environ.get("GRAPH_CLI", defaults.graph_cli),
            node_url=environ.get("GRAPH_NODE_URL", defaults.node_url),
            ipfs_url=environ.get("GRAPH_IPFS_URL", defaults.ipfs_url),
            team=environ.get("GRAPH_TEAM", defaults.team),
            records_path=Path(records_path) if records_path else None,
            records_url=environ.get("DEPLOYMENT_RECORDS_URL") or None,
            package_json=Path(package_json) if package_json else None,
        )

    def package_version(self) -> Optional[str]:
        """
        Version declared by the records package, used as default release label.

        Returns:
            The version string, or None if package.json is missing or unreadable
        """
        try:
            with open(self.package_json) as f:
                version = json.load(f).get("version")
        except (FileNotFoundError, json.JSONDecodeError) as e:
            logger.debug("No package version from %s: %s", self.package_json, e)
            return None
        return version if isinstance(version, str) else None
