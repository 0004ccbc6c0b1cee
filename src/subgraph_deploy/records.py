"""Deployment records collaborator for subgraph-deploy."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests

from .exceptions import InvalidDeploymentRecordError, RecordsDownloadError, RecordsNotFoundError
from .parsers import parse_contract_records
from .types import ContractDeployment

logger = logging.getLogger(__name__)


class DeploymentRecords:
    """Known contract deployments per network, loaded from a JSON cache."""

    def __init__(self, records_path: Union[Path, str]):
        """
        Load the deployment records cache.

        Args:
            records_path: Path to the records JSON file. Expected layout:
                {"metadata": {...},
                 "networks": {network: {"contracts": {name: [{"address", "startBlock"}]}}}}

        Raises:
            RecordsNotFoundError: If the file does not exist
            InvalidDeploymentRecordError: If the file is not a records document
        """
        path = Path(records_path)
        if not path.exists():
            raise RecordsNotFoundError(
                f"Deployment records not found at {path}. "
                "Refresh dependencies or set DEPLOYMENT_RECORDS."
            )

        with open(path) as f:
            self._cache = json.load(f)

        if not isinstance(self._cache, dict) or not isinstance(self._cache.get("networks", {}), dict):
            raise InvalidDeploymentRecordError(f"Malformed deployment records file: {path}")

        self.path = path

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentRecords":
        """Build records from an already loaded document (no file access)."""
        records = cls.__new__(cls)
        records._cache = data
        records.path = None
        return records

    def has_network(self, network: str) -> bool:
        """
        Check if a network has any records.

        Args:
            network: Network name, e.g. "optimism"

        Returns:
            True if network exists in the records, False otherwise
        """
        return network in self._cache.get("networks", {})

    def contract_names(self, network: str) -> List[str]:
        """
        Get contract names with records on a network.

        Returns:
            Names in record order; empty if the network is unknown
        """
        if not self.has_network(network):
            return []
        return list(self._cache["networks"][network].get("contracts", {}).keys())

    def deployments_for(self, contract_name: str, network: str) -> List[ContractDeployment]:
        """
        Get every deployment of a contract on a network.

        Args:
            contract_name: Contract name, e.g. "FuturesMarketManager"
            network: Network name

        Returns:
            Deployments in record order. Empty when the contract (or network)
            has no records; that is not an error.

        Raises:
            InvalidDeploymentRecordError: If any record for the contract is malformed
        """
        if not self.has_network(network):
            logger.debug("No deployment records for network %s", network)
            return []

        contracts = self._cache["networks"][network].get("contracts", {})
        if contract_name not in contracts:
            logger.debug("No deployments of %s on %s", contract_name, network)
            return []

        return parse_contract_records(contract_name, contracts[contract_name])

    def metadata(self) -> Dict[str, Any]:
        """
        Get records metadata (source package, package version).

        Returns:
            Metadata dictionary
        """
        return self._cache.get("metadata", {})

    def package_version(self) -> Optional[str]:
        """Version of the package the records were taken from, if recorded."""
        return self.metadata().get("version")


def download_records(url: str, output_path: Union[Path, str]) -> str:
    """
    Download a published deployment records cache.

    Args:
        url: Location of the records JSON document
        output_path: Where to save it

    Returns:
        Path where the records were saved

    Raises:
        RecordsDownloadError: If the request fails or returns a non-200 status
        InvalidDeploymentRecordError: If the payload is not a records document
    """
    try:
        response = requests.get(url, timeout=30)
    except requests.RequestException as e:
        raise RecordsDownloadError(
            f"Network error while downloading deployment records: {e}", url
        ) from e

    if response.status_code != 200:
        raise RecordsDownloadError(
            f"Deployment records download failed with status {response.status_code}",
            url,
            response.status_code,
        )

    try:
        data = response.json()
    except ValueError as e:
        raise InvalidDeploymentRecordError(f"Deployment records at {url} are not JSON") from e

    if not isinstance(data, dict) or not isinstance(data.get("networks"), dict):
        raise InvalidDeploymentRecordError(
            f"Deployment records at {url} have no 'networks' object"
        )

    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path_obj, "w") as f:
        json.dump(data, f, indent=2)

    logger.info("Saved deployment records for %d networks to %s", len(data["networks"]), output_path_obj)
    return str(output_path_obj)
