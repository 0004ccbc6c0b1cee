"""Network resolution for subgraph-deploy."""

import logging
import os
from typing import List, Mapping, Optional, Protocol

from .constants import NETWORK_ENV, NetworkId
from .exceptions import ConfigurationError
from .types import ContractDeployment

logger = logging.getLogger(__name__)


class RecordsSource(Protocol):
    """Anything that can list deployments of a contract on a network."""

    def deployments_for(self, contract_name: str, network: str) -> List[ContractDeployment]:
        ...


def parse_network(value: Optional[str]) -> NetworkId:
    """
    Convert a network name into a NetworkId.

    Raises:
        ConfigurationError: If value is empty or not a recognized network
    """
    if not value:
        raise ConfigurationError(
            f"{NETWORK_ENV} is not set; expected one of: {', '.join(n.value for n in NetworkId)}"
        )
    try:
        return NetworkId(value.strip())
    except ValueError:
        raise ConfigurationError(
            f"Unknown network '{value}'; expected one of: {', '.join(n.value for n in NetworkId)}"
        ) from None


def current_network(environ: Optional[Mapping[str, str]] = None) -> NetworkId:
    """
    Read the active network from the environment.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        The active NetworkId

    Raises:
        ConfigurationError: If the variable is missing or not recognized
    """
    if environ is None:
        environ = os.environ
    return parse_network(environ.get(NETWORK_ENV))


class NetworkResolver:
    """Looks up contract deployments on one active network."""

    def __init__(self, records: RecordsSource, network: Optional[NetworkId] = None):
        if network is None:
            network = current_network()
        self.records = records
        self.network = network

    def deployments_for(self, contract_name: str) -> List[ContractDeployment]:
        deployments = self.records.deployments_for(contract_name, self.network.value)
        logger.debug(
            "%s has %d deployment(s) on %s", contract_name, len(deployments), self.network.value
        )
        return deployments
