"""
subgraph-deploy: build subgraph manifests and push them through the deploy pipeline
"""

from importlib.metadata import PackageNotFoundError, version

from .constants import NetworkId
from .exceptions import (
    ConfigurationError,
    ExternalCommandError,
    InvalidDeploymentRecordError,
    ManifestError,
    RecordsDownloadError,
    RecordsNotFoundError,
    SchemaConflictError,
    SchemaError,
    SubgraphDeployError,
)
from .markets import VARIANTS, build_manifest
from .network import NetworkResolver, current_network
from .pipeline import PipelineContext, run_pipeline
from .records import DeploymentRecords, download_records
from .schema import merge_type_defs, write_merged_schema
from .types import ContractDeployment, DeploymentPlan, ManifestDocument

try:
    __version__ = version("subgraph-deploy")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "NetworkId",
    "NetworkResolver",
    "current_network",
    "DeploymentRecords",
    "download_records",
    "VARIANTS",
    "build_manifest",
    "merge_type_defs",
    "write_merged_schema",
    "PipelineContext",
    "run_pipeline",
    "ContractDeployment",
    "DeploymentPlan",
    "ManifestDocument",
    "SubgraphDeployError",
    "ConfigurationError",
    "RecordsNotFoundError",
    "RecordsDownloadError",
    "InvalidDeploymentRecordError",
    "ManifestError",
    "SchemaError",
    "SchemaConflictError",
    "ExternalCommandError",
]
