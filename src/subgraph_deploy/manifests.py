"""Manifest building blocks for subgraph-deploy."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

import yaml

from .constants import NetworkId
from .exceptions import ConfigurationError, ManifestError
from .parsers import validate_deployment
from .types import (
    ContractDeployment,
    DataSourceManifest,
    ManifestDocument,
    Mapping,
    TemplateManifest,
)

logger = logging.getLogger(__name__)


class DeploymentLookup(Protocol):
    """The part of NetworkResolver the builders need."""

    network: NetworkId

    def deployments_for(self, contract_name: str) -> List[ContractDeployment]:
        ...


@dataclass(frozen=True)
class AddressTable:
    """
    Address of a registry-less singleton contract on every network.

    resolve() is total over NetworkId: an exact entry wins, any other network
    gets the address of the designated fallback network.
    """

    contract: str
    addresses: Dict[NetworkId, str]
    fallback: NetworkId
    start_block: int = 0

    def __post_init__(self):
        if self.fallback not in self.addresses:
            raise ConfigurationError(
                f"{self.contract}: fallback network '{self.fallback.value}' has no address"
            )
        for network, address in self.addresses.items():
            if not address:
                raise ConfigurationError(
                    f"{self.contract}: empty address for network '{network.value}'"
                )
        if self.start_block < 0:
            raise ConfigurationError(f"{self.contract}: negative start block")

    def resolve(self, network: NetworkId) -> str:
        if network in self.addresses:
            return self.addresses[network]
        logger.debug(
            "%s has no address on %s, using %s",
            self.contract,
            network.value,
            self.fallback.value,
        )
        return self.addresses[self.fallback]

    def uses_fallback(self, network: NetworkId) -> bool:
        return network not in self.addresses

    def covers(self) -> bool:
        """Check that every recognized network resolves to an address."""
        return all(self.resolve(network) for network in NetworkId)


def enumerate_deployments(
    deployments: Iterable[ContractDeployment],
) -> List[Tuple[int, ContractDeployment]]:
    """Pair each deployment with its position in the records, starting at 0."""
    return list(enumerate(deployments))


def data_source_name(market: str, contract_name: str, index: int) -> str:
    return f"{market}_{contract_name}_{index}"


def _validated(resolver: DeploymentLookup, contract_name: str) -> List[ContractDeployment]:
    deployments = resolver.deployments_for(contract_name)
    for deployment in deployments:
        validate_deployment(contract_name, deployment)
    if not deployments:
        logger.info(
            "No deployments of %s on %s, no data sources emitted",
            contract_name,
            resolver.network.value,
        )
    return deployments


def manager_data_sources(
    resolver: DeploymentLookup,
    market: str,
    contract_name: str,
    mapping: Mapping,
    start_block: Optional[int] = None,
) -> List[DataSourceManifest]:
    """
    Emit one data source per deployment of a registry ("manager") contract.

    Args:
        resolver: Deployment lookup bound to the active network
        market: Market family prefix, e.g. "futures"
        contract_name: Manager contract name; also used as the ABI name
        mapping: Handler wiring for every emitted data source
        start_block: Index every source from this block instead of the
            deployment's own start block

    Returns:
        Data sources named "{market}_{contract_name}_{index}" in record order

    Raises:
        InvalidDeploymentRecordError: If any deployment is malformed. Raised
            before any data source is built.
    """
    deployments = _validated(resolver, contract_name)
    return [
        DataSourceManifest(
            name=data_source_name(market, contract_name, index),
            network=resolver.network.value,
            abi=contract_name,
            address=deployment.address,
            start_block=deployment.start_block if start_block is None else start_block,
            mapping=mapping,
        )
        for index, deployment in enumerate_deployments(deployments)
    ]


def asset_data_sources(
    resolver: DeploymentLookup,
    market: str,
    contract_names: Sequence[str],
    abi: str,
    mapping: Mapping,
) -> List[DataSourceManifest]:
    """
    Emit data sources for contracts deployed once per named asset.

    Each asset contract's own deployments are enumerated directly and indexed
    from 0. All contracts are validated before anything is emitted.
    """
    per_contract = [(name, _validated(resolver, name)) for name in contract_names]
    return [
        DataSourceManifest(
            name=data_source_name(market, name, index),
            network=resolver.network.value,
            abi=abi,
            address=deployment.address,
            start_block=deployment.start_block,
            mapping=mapping,
        )
        for name, deployments in per_contract
        for index, deployment in enumerate_deployments(deployments)
    ]


def singleton_data_source(
    table: AddressTable,
    name: str,
    network: NetworkId,
    mapping: Mapping,
) -> DataSourceManifest:
    return DataSourceManifest(
        name=name,
        network=network.value,
        abi=table.contract,
        address=table.resolve(network),
        start_block=table.start_block,
        mapping=mapping,
    )


def template(name: str, network: NetworkId, abi: str, mapping: Mapping) -> TemplateManifest:
    return TemplateManifest(name=name, network=network.value, abi=abi, mapping=mapping)


def _check_unique(kind: str, names: List[str]) -> None:
    seen = set()
    for name in names:
        if name in seen:
            raise ManifestError(f"Duplicate {kind} name '{name}'")
        seen.add(name)


def assemble_manifest(
    schema_file: str,
    data_sources: Sequence[DataSourceManifest],
    templates: Sequence[TemplateManifest] = (),
) -> ManifestDocument:
    """
    Build a manifest document and check its naming invariants.

    Raises:
        ManifestError: If two data sources (or two templates) share a name,
            or a mapping binds the same handler name twice
    """
    _check_unique("data source", [source.name for source in data_sources])
    _check_unique("template", [entry.name for entry in templates])
    for entry in [*data_sources, *templates]:
        handlers = [binding.handler for binding in entry.mapping.event_handlers]
        if len(handlers) != len(set(handlers)):
            raise ManifestError(f"'{entry.name}' binds the same handler name more than once")

    return ManifestDocument(
        schema_file=schema_file,
        data_sources=list(data_sources),
        templates=list(templates),
    )


def render_manifest(document: ManifestDocument) -> str:
    """Serialize a manifest document to YAML."""
    return yaml.safe_dump(document.to_dict(), sort_keys=False, default_flow_style=False)


def write_manifest(document: ManifestDocument, path: Union[Path, str]) -> Path:
    """
    Write a manifest artifact, replacing any previous file.

    Returns:
        Path of the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_manifest(document))
    logger.debug("Wrote manifest with %d data sources to %s", len(document.data_sources), path)
    return path
