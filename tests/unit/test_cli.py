"""Unit tests for the command-line interface."""

import functools
from pathlib import Path

import pytest
import responses
import yaml

from conftest import RecordingRunner
from subgraph_deploy import cli
from subgraph_deploy.cli import _with_command, build_parser, main, parse_boolean
from subgraph_deploy.network import NetworkResolver
from subgraph_deploy.pipeline import PipelineContext
from subgraph_deploy.schema import AUTOGEN_NOTICE


class TestParseBoolean:
    @pytest.mark.parametrize("value", ["false", "False", "no", "0", " NO "])
    def test_false_values(self, value):
        assert parse_boolean(value) is False

    @pytest.mark.parametrize("value", ["true", "yes", "1", "y"])
    def test_true_values(self, value):
        assert parse_boolean(value) is True


class TestParser:
    """Test deploy flag parsing."""

    def test_omitted_flags_are_none(self):
        args = build_parser().parse_args(["deploy"])

        for name in cli.ANSWER_FLAGS:
            assert getattr(args, name) is None

    def test_bare_bool_flag_is_true(self):
        args = build_parser().parse_args(["deploy", "-a", "--prebuild"])

        assert args.update_abis is True
        assert args.prebuild is True

    def test_bool_flag_with_value(self):
        args = build_parser().parse_args(["deploy", "-a", "false", "--deploy-decentralized", "no"])

        assert args.update_abis is False
        assert args.deploy_decentralized is False

    def test_value_flags(self):
        args = build_parser().parse_args(
            ["deploy", "-s", "perps", "-t", "kwenta", "-k", "token", "-n", "optimism", "-v", "2.0.0"]
        )

        assert args.subgraph == "perps"
        assert args.team == "kwenta"
        assert args.access_token == "token"
        assert args.network == "optimism"
        assert args.version_label == "2.0.0"

    def test_manifest_rejects_unknown_variant(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["manifest", "spot"])


class TestManifestCommand:
    """Test `subgraph-deploy manifest`."""

    def test_writes_manifest_file(self, temp_records_file: Path, tmp_path: Path):
        output = tmp_path / "out" / "futures.yaml"

        code = main(
            [
                "manifest",
                "futures",
                "--root",
                str(tmp_path),
                "--records",
                str(temp_records_file),
                "--network",
                "optimism",
                "-o",
                str(output),
            ]
        )

        assert code == 0
        data = yaml.safe_load(output.read_text())
        assert data["schema"] == {"file": "./futures.graphql"}
        assert data["dataSources"][0]["name"] == "futures_FuturesMarketManager_0"
        assert data["dataSources"][0]["network"] == "optimism"

    def test_prints_to_stdout_by_default(self, temp_records_file: Path, tmp_path: Path, capsys):
        code = main(
            ["manifest", "rates", "--root", str(tmp_path), "--records", str(temp_records_file), "-n", "optimism"]
        )

        assert code == 0
        data = yaml.safe_load(capsys.readouterr().out)
        assert [s["name"] for s in data["dataSources"]] == [
            "rates_AggregatorsETH_0",
            "rates_AggregatorsBTC_0",
            "rates_AggregatorsBTC_1",
        ]

    def test_network_from_environment(self, temp_records_file: Path, tmp_path: Path, capsys, monkeypatch):
        monkeypatch.setenv("SNX_NETWORK", "optimism-goerli")

        code = main(["manifest", "perps", "--root", str(tmp_path), "--records", str(temp_records_file)])

        assert code == 0
        data = yaml.safe_load(capsys.readouterr().out)
        assert [s["network"] for s in data["dataSources"]] == ["optimism-goerli"]

    def test_unknown_network_exits_nonzero(self, temp_records_file: Path, tmp_path: Path):
        code = main(
            ["manifest", "futures", "--root", str(tmp_path), "--records", str(temp_records_file), "-n", "solana"]
        )

        assert code == 1

    def test_missing_records_exits_nonzero(self, tmp_path: Path, capsys):
        code = main(
            ["manifest", "futures", "--root", str(tmp_path), "--records", str(tmp_path / "nope.json"), "-n", "optimism"]
        )

        assert code == 1
        assert "RecordsNotFoundError" in capsys.readouterr().out


class TestSchemaCommand:
    def test_writes_main_schema(self, project_root: Path):
        code = main(["schema", "--root", str(project_root)])

        assert code == 0
        text = (project_root / "subgraphs" / "main.graphql").read_text()
        assert text.startswith(AUTOGEN_NOTICE)
        assert text.count("type FuturesMarket @entity") == 1


class TestDeployCommand:
    """Test the default deploy command end to end with a recording runner."""

    ANSWERS = [
        "-a", "false",
        "-m", "false",
        "-s", "futures",
        "-t", "kwenta",
        "-k", "token",
        "-p", "false",
        "-n", "optimism",
        "-d", "false",
    ]

    def patch_context(self, monkeypatch, runner, sample_records):
        monkeypatch.setattr(
            cli,
            "PipelineContext",
            functools.partial(
                PipelineContext,
                run=runner,
                resolver_factory=lambda network: NetworkResolver(sample_records, network),
            ),
        )

    def test_deploy_is_the_default_command(self, project_root: Path, sample_records, monkeypatch):
        runner = RecordingRunner()
        self.patch_context(monkeypatch, runner, sample_records)

        code = main([*self.ANSWERS, "--root", str(project_root)])

        assert code == 0
        assert [call.args[1] for call in runner.calls] == ["build", "deploy"]
        assert runner.calls[1].args[-2] == "kwenta/optimism-futures"

    def test_failure_reports_stage_and_network(self, project_root: Path, sample_records, monkeypatch, capsys):
        """Test that a failed deploy exits 1 and names the failing stage and network."""
        runner = RecordingRunner(fail_on=lambda args, network: "deploy" in args)
        self.patch_context(monkeypatch, runner, sample_records)

        code = main(["deploy", *self.ANSWERS, "--root", str(project_root)])

        output = capsys.readouterr().out
        assert code == 1
        assert "Failed at stage BuildAndDeployHosted" in output
        assert "Network: optimism" in output
        assert "deploy failed: rate limited" in output

    @responses.activate
    def test_failed_records_download_reports_stage(
        self, project_root: Path, sample_records, monkeypatch, capsys
    ):
        """Test that a records refresh answering 500 exits 1 and names the stage."""
        url = "https://records.example.com/deployments.json"
        responses.add(responses.GET, url, status=500)
        monkeypatch.setenv("DEPLOYMENT_RECORDS_URL", url)
        runner = RecordingRunner()
        self.patch_context(monkeypatch, runner, sample_records)

        code = main(["-a", *self.ANSWERS[2:], "--root", str(project_root)])

        output = capsys.readouterr().out
        assert code == 1
        assert "Failed at stage RefreshDependencies" in output
        assert "RecordsDownloadError" in output
        assert [call.args[0] for call in runner.calls] == ["npm", "node"]


class TestCommandSelection:
    """Test where the command is found in argv."""

    def test_flags_only_default_to_deploy(self):
        assert _with_command(["-a", "false", "-n", "optimism"]) == ["deploy", "-a", "false", "-n", "optimism"]

    def test_empty_argv_defaults_to_deploy(self):
        assert _with_command([]) == ["deploy"]

    def test_command_first_unchanged(self):
        assert _with_command(["manifest", "futures"]) == ["manifest", "futures"]

    def test_shared_options_before_command(self):
        assert _with_command(["--root", "/srv/subgraphs", "--debug", "manifest", "futures"]) == [
            "manifest",
            "--root",
            "/srv/subgraphs",
            "--debug",
            "futures",
        ]

    def test_option_value_named_like_a_command(self):
        assert _with_command(["--root", "schema", "schema"]) == ["schema", "--root", "schema"]

    def test_help_left_alone(self):
        assert _with_command(["--help"]) == ["--help"]

    def test_root_before_manifest_command(self, temp_records_file: Path, tmp_path: Path, capsys):
        code = main(
            ["--root", str(tmp_path), "--records", str(temp_records_file), "manifest", "rates", "-n", "optimism"]
        )

        assert code == 0
        assert yaml.safe_load(capsys.readouterr().out)["schema"] == {"file": "./rates.graphql"}
