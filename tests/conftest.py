"""Shared pytest fixtures for subgraph-deploy tests."""

import json
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest
from rich.console import Console

from subgraph_deploy.config import Settings
from subgraph_deploy.constants import NetworkId
from subgraph_deploy.exceptions import ExternalCommandError
from subgraph_deploy.network import NetworkResolver
from subgraph_deploy.pipeline import PipelineContext
from subgraph_deploy.records import DeploymentRecords
from subgraph_deploy.types import ContractDeployment


@dataclass
class Call:
    """One recorded external command."""

    args: List[str]
    stage: str
    env: Dict[str, str]
    network: Optional[str]


class RecordingRunner:
    """Stands in for run_command; records calls and fails on request."""

    def __init__(self, fail_on: Optional[Callable[[List[str], Optional[str]], bool]] = None):
        self.calls: List[Call] = []
        self.fail_on = fail_on

    def __call__(self, args, stage, env=None, cwd=None, network=None):
        call = Call(list(args), stage, dict(env or {}), network)
        self.calls.append(call)
        if self.fail_on is not None and self.fail_on(call.args, network):
            raise ExternalCommandError(stage, args, 1, "deploy failed: rate limited", network)
        return subprocess.CompletedProcess(list(args), 0, "", "")


class ScriptedDecider:
    """Answers prompts from a dict; unanswered prompts take their default."""

    def __init__(self, answers: Dict[str, Any]):
        self.answers = answers
        self.asked: List[str] = []

    def _answer(self, name: str, default: Any) -> Any:
        self.asked.append(name)
        if name in self.answers:
            return self.answers[name]
        if default is None:
            raise AssertionError(f"Unexpected question without default: {name}")
        return default

    def confirm(self, name: str, message: str, default: bool = True) -> bool:
        return self._answer(name, default)

    def choose(self, name: str, message: str, choices: Sequence[str], default=None) -> str:
        answer = self._answer(name, default)
        assert answer in choices
        return answer

    def text(self, name: str, message: str, default=None, secret: bool = False) -> str:
        return self._answer(name, default)


class StaticResolver:
    """Deployment lookup backed by a plain dict."""

    def __init__(self, network: NetworkId, deployments: Dict[str, List[ContractDeployment]]):
        self.network = network
        self.deployments = deployments

    def deployments_for(self, contract_name: str) -> List[ContractDeployment]:
        return list(self.deployments.get(contract_name, []))


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_records_json(fixtures_dir: Path) -> Dict[str, Any]:
    """Load and return the sample deployment records fixture."""
    with open(fixtures_dir / "sample_records.json") as f:
        return json.load(f)


@pytest.fixture
def sample_records(sample_records_json: Dict[str, Any]) -> DeploymentRecords:
    """Deployment records built from the sample fixture."""
    return DeploymentRecords.from_dict(sample_records_json)


@pytest.fixture
def temp_records_file(tmp_path: Path, sample_records_json: Dict[str, Any]) -> Path:
    """Write the sample records to a temporary file."""
    records_path = tmp_path / "deployments.json"
    with open(records_path, "w") as f:
        json.dump(sample_records_json, f, indent=2)
    return records_path


@pytest.fixture
def optimism_resolver(sample_records: DeploymentRecords) -> NetworkResolver:
    """Resolver for optimism over the sample records."""
    return NetworkResolver(sample_records, NetworkId.OPTIMISM)


@pytest.fixture
def project_root(tmp_path: Path, fixtures_dir: Path) -> Path:
    """A subgraph project with the per-market schemas in subgraphs/."""
    root = tmp_path / "project"
    subgraphs = root / "subgraphs"
    subgraphs.mkdir(parents=True)
    for schema in (fixtures_dir / "schemas").glob("*.graphql"):
        shutil.copy(schema, subgraphs / schema.name)
    return root


@pytest.fixture
def runner() -> RecordingRunner:
    """Command runner that records every call and succeeds."""
    return RecordingRunner()


@pytest.fixture
def make_context(project_root: Path, sample_records: DeploymentRecords):
    """Factory for pipeline contexts over the sample project and records."""

    def _make(answers: Dict[str, Any], runner: RecordingRunner, **settings_overrides) -> PipelineContext:
        settings = Settings(root=project_root, **settings_overrides)
        return PipelineContext(
            settings=settings,
            decider=ScriptedDecider(answers),
            run=runner,
            console=Console(quiet=True),
            resolver_factory=lambda network: NetworkResolver(sample_records, network),
        )

    return _make
