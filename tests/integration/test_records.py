"""Integration tests for the deployment records cache."""

import json
from pathlib import Path

import pytest
import requests
import responses

from subgraph_deploy import DeploymentRecords, download_records
from subgraph_deploy.exceptions import (
    InvalidDeploymentRecordError,
    RecordsDownloadError,
    RecordsNotFoundError,
    SubgraphDeployError,
)
from subgraph_deploy.types import ContractDeployment

RECORDS_URL = "https://records.example.com/deployments.json"


class TestDeploymentRecordsFile:
    """Test loading records from disk."""

    def test_loads_records_file(self, temp_records_file: Path):
        records = DeploymentRecords(temp_records_file)

        assert records.path == temp_records_file
        assert records.has_network("optimism")
        assert records.package_version() == "2.85.1"

    def test_deployments_in_record_order(self, temp_records_file: Path):
        records = DeploymentRecords(str(temp_records_file))

        deployments = records.deployments_for("FuturesMarketManager", "optimism")

        assert [d.start_block for d in deployments] == [4333000, 52456507]
        assert all(isinstance(d, ContractDeployment) for d in deployments)

    def test_unknown_contract_and_network_are_empty(self, temp_records_file: Path):
        records = DeploymentRecords(temp_records_file)

        assert records.deployments_for("PerpsV2Market", "optimism") == []
        assert records.deployments_for("FuturesMarketManager", "kovan") == []
        assert records.deployments_for("AggregatorsLINK", "optimism") == []

    def test_contract_names(self, temp_records_file: Path):
        records = DeploymentRecords(temp_records_file)

        assert "AggregatorsETH" in records.contract_names("optimism")
        assert records.contract_names("mainnet") == []
        assert records.contract_names("kovan") == []

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(RecordsNotFoundError) as exc_info:
            DeploymentRecords(tmp_path / "does_not_exist.json")

        assert isinstance(exc_info.value, FileNotFoundError)
        assert isinstance(exc_info.value, SubgraphDeployError)

    def test_malformed_file_raises(self, tmp_path: Path):
        path = tmp_path / "deployments.json"
        path.write_text(json.dumps({"networks": ["optimism"]}))

        with pytest.raises(InvalidDeploymentRecordError):
            DeploymentRecords(path)

    def test_malformed_record_raises_on_lookup(self, tmp_path: Path, sample_records_json):
        sample_records_json["networks"]["optimism"]["contracts"]["AggregatorsETH"] = [
            {"startBlock": 10}
        ]
        path = tmp_path / "deployments.json"
        path.write_text(json.dumps(sample_records_json))
        records = DeploymentRecords(path)

        assert len(records.deployments_for("AggregatorsBTC", "optimism")) == 2
        with pytest.raises(InvalidDeploymentRecordError):
            records.deployments_for("AggregatorsETH", "optimism")


class TestDownloadRecords:
    """Test download_records with mocked HTTP."""

    @responses.activate
    def test_saves_downloaded_records(self, tmp_path: Path, sample_records_json):
        responses.add(responses.GET, RECORDS_URL, json=sample_records_json, status=200)

        output = download_records(RECORDS_URL, tmp_path / "cache" / "deployments.json")

        assert output == str(tmp_path / "cache" / "deployments.json")
        records = DeploymentRecords(output)
        assert records.has_network("optimism-goerli")

    @responses.activate
    def test_http_error_raises(self, tmp_path: Path):
        responses.add(responses.GET, RECORDS_URL, status=500)

        with pytest.raises(RecordsDownloadError) as exc_info:
            download_records(RECORDS_URL, tmp_path / "deployments.json")

        assert "500" in str(exc_info.value)
        assert exc_info.value.status_code == 500
        assert exc_info.value.url == RECORDS_URL
        assert isinstance(exc_info.value, SubgraphDeployError)
        assert not (tmp_path / "deployments.json").exists()

    @responses.activate
    def test_connection_error_raises(self, tmp_path: Path):
        responses.add(responses.GET, RECORDS_URL, body=requests.ConnectionError("unreachable"))

        with pytest.raises(RuntimeError) as exc_info:
            download_records(RECORDS_URL, tmp_path / "deployments.json")

        assert "Network error" in str(exc_info.value)

    @responses.activate
    def test_payload_without_networks_rejected(self, tmp_path: Path):
        responses.add(responses.GET, RECORDS_URL, json={"metadata": {}}, status=200)

        with pytest.raises(InvalidDeploymentRecordError):
            download_records(RECORDS_URL, tmp_path / "deployments.json")

    @responses.activate
    def test_non_json_payload_rejected(self, tmp_path: Path):
        responses.add(responses.GET, RECORDS_URL, body="<html>maintenance</html>", status=200)

        with pytest.raises(InvalidDeploymentRecordError):
            download_records(RECORDS_URL, tmp_path / "deployments.json")
