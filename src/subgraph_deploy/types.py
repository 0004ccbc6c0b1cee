"""Data types and dataclasses for subgraph-deploy."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .constants import (
    API_VERSION,
    CONTRACT_KIND,
    DESCRIPTION,
    MAPPING_KIND,
    MAPPING_LANGUAGE,
    REPOSITORY,
    SPEC_VERSION,
)


@dataclass(frozen=True)
class ContractDeployment:
    """One on-chain deployment of a named contract."""

    address: str  # e.g. "0x8e43BF1910ad1461EEe0Daca10547c7e6d9D2f36"
    start_block: int  # First block to index from


@dataclass(frozen=True)
class EventHandlerBinding:
    """Maps an ABI event signature to the handler invoked for it."""

    event: str  # Exact signature, e.g. "MarketAdded(address,indexed bytes32,indexed bytes32)"
    handler: str  # e.g. "handleV2MarketAdded"

    def to_dict(self) -> Dict[str, str]:
        return {"event": self.event, "handler": self.handler}


@dataclass(frozen=True)
class AbiReference:
    """ABI file made available to a mapping."""

    name: str
    file: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "file": self.file}


@dataclass(frozen=True)
class Mapping:
    """Handler wiring shared by data sources and templates."""

    file: str  # Handler source, relative to the manifest
    entities: List[str]
    abis: List[AbiReference]
    event_handlers: List[EventHandlerBinding]
    api_version: str = API_VERSION
    language: str = MAPPING_LANGUAGE
    kind: str = MAPPING_KIND

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "apiVersion": self.api_version,
            "language": self.language,
            "file": self.file,
            "entities": list(self.entities),
            "abis": [abi.to_dict() for abi in self.abis],
            "eventHandlers": [binding.to_dict() for binding in self.event_handlers],
        }


@dataclass(frozen=True)
class DataSourceManifest:
    """A fixed, already deployed contract instance to index."""

    name: str  # Unique within a manifest document
    network: str
    abi: str
    address: str
    start_block: int
    mapping: Mapping
    kind: str = CONTRACT_KIND

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "network": self.network,
            "source": {
                "address": self.address,
                "startBlock": self.start_block,
                "abi": self.abi,
            },
            "mapping": self.mapping.to_dict(),
        }


@dataclass(frozen=True)
class TemplateManifest:
    """A contract type instantiated at index time by a factory event."""

    name: str
    network: str
    abi: str
    mapping: Mapping
    kind: str = CONTRACT_KIND

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "network": self.network,
            "source": {"abi": self.abi},
            "mapping": self.mapping.to_dict(),
        }


@dataclass(frozen=True)
class ManifestDocument:
    """Root manifest consumed by the graph CLI."""

    schema_file: str  # e.g. "./futures.graphql"
    data_sources: List[DataSourceManifest] = field(default_factory=list)
    templates: List[TemplateManifest] = field(default_factory=list)
    spec_version: str = SPEC_VERSION
    description: str = DESCRIPTION
    repository: str = REPOSITORY

    def entities(self) -> List[str]:
        """Entity names referenced anywhere in the document, first-seen order."""
        seen: Dict[str, None] = {}
        for entry in [*self.data_sources, *self.templates]:
            for entity in entry.mapping.entities:
                seen.setdefault(entity, None)
        return list(seen)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "specVersion": self.spec_version,
            "description": self.description,
            "repository": self.repository,
            "schema": {"file": self.schema_file},
            "dataSources": [source.to_dict() for source in self.data_sources],
        }
        if self.templates:
            result["templates"] = [template.to_dict() for template in self.templates]
        return result


@dataclass(frozen=True)
class DeploymentPlan:
    """
    Decisions accumulated by the deploy pipeline.

    None means "not decided yet"; the stage that owns a field asks for it.
    Stages return updated copies instead of mutating the plan.
    """

    update_abis: Optional[bool] = None
    generate_main: Optional[bool] = None
    subgraph: Optional[str] = None
    team: Optional[str] = None
    access_token: Optional[str] = None
    prebuild: Optional[bool] = None
    network: Optional[str] = None  # "All", "None" or a network id
    deploy_decentralized: Optional[bool] = None
    version_label: Optional[str] = None
