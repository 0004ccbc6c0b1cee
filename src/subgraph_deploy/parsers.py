"""Deployment record parsers for subgraph-deploy."""

from typing import Any, Dict, List

from .exceptions import InvalidDeploymentRecordError
from .types import ContractDeployment


def parse_deployment_record(contract_name: str, raw: Dict[str, Any]) -> ContractDeployment:
    """
    Parse one raw deployment record.

    Args:
        contract_name: Contract the record belongs to (used in error messages)
        raw: Record with "address" and optional "startBlock" keys

    Returns:
        ContractDeployment with start_block defaulting to 0

    Raises:
        InvalidDeploymentRecordError: If the address is missing or empty,
            or the start block is not a non-negative integer
    """
    if not isinstance(raw, dict):
        raise InvalidDeploymentRecordError(
            f"Deployment record for '{contract_name}' must be an object, got {type(raw).__name__}"
        )

    address = raw.get("address")
    if not isinstance(address, str) or not address:
        raise InvalidDeploymentRecordError(
            f"Deployment record for '{contract_name}' is missing an address"
        )

    start_block = raw.get("startBlock", 0)
    # bool is an int subclass but never a valid block height
    if isinstance(start_block, bool) or not isinstance(start_block, int):
        raise InvalidDeploymentRecordError(
            f"Deployment of '{contract_name}' at {address} has a non-integer start block: "
            f"{start_block!r}"
        )

    deployment = ContractDeployment(address=address, start_block=start_block)
    validate_deployment(contract_name, deployment)
    return deployment


def validate_deployment(contract_name: str, deployment: ContractDeployment) -> None:
    """
    Check a deployment before it is turned into a data source.

    Raises:
        InvalidDeploymentRecordError: If address is empty or start block negative
    """
    if not deployment.address:
        raise InvalidDeploymentRecordError(
            f"Deployment record for '{contract_name}' is missing an address"
        )
    if deployment.start_block < 0:
        raise InvalidDeploymentRecordError(
            f"Deployment of '{contract_name}' at {deployment.address} has a negative "
            f"start block: {deployment.start_block}"
        )


def parse_contract_records(contract_name: str, raw: Any) -> List[ContractDeployment]:
    """
    Parse the record list of one contract, keeping source order.

    Raises:
        InvalidDeploymentRecordError: If raw is not a list or any record is invalid
    """
    if not isinstance(raw, list):
        raise InvalidDeploymentRecordError(
            f"Deployment records for '{contract_name}' must be a list"
        )
    return [parse_deployment_record(contract_name, record) for record in raw]
