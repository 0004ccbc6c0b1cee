"""Command-line entry point: subgraph-deploy."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from .config import Settings
from .exceptions import ExternalCommandError, SubgraphDeployError
from .manifests import render_manifest, write_manifest
from .markets import SUBGRAPH_CHOICES, VARIANTS, build_manifest
from .network import NetworkResolver, current_network, parse_network
from .paths import get_schema_path
from .pipeline import PipelineContext, run_pipeline
from .prompts import ConsoleDecider, PresetDecider
from .records import DeploymentRecords
from .schema import write_merged_schema

logger = logging.getLogger(__name__)

COMMANDS = ("deploy", "manifest", "schema")
SHARED_VALUE_OPTIONS = ("--root", "--records")

# Flags answering pipeline questions; omitted ones are asked interactively
ANSWER_FLAGS = (
    "update_abis",
    "generate_main",
    "subgraph",
    "team",
    "access_token",
    "prebuild",
    "network",
    "deploy_decentralized",
    "version_label",
)


def parse_boolean(value: str) -> bool:
    """Parse an optional boolean flag value; "false", "no" and "0" are False."""
    return value.strip().lower() not in ("false", "no", "0")


def _add_bool_flag(parser: argparse.ArgumentParser, *names: str, help: str) -> None:
    parser.add_argument(*names, nargs="?", const=True, default=None, type=parse_boolean, help=help)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--root", help="Subgraph project root (default: $SUBGRAPH_ROOT or cwd)")
    common.add_argument("--records", help="Deployment records JSON (default: $DEPLOYMENT_RECORDS)")
    common.add_argument("--debug", action="store_true", help="Enable debug logging")

    parser = argparse.ArgumentParser(
        prog="subgraph-deploy",
        description="Build subgraph manifests and deploy them to The Graph",
    )
    subparsers = parser.add_subparsers(dest="command")

    deploy = subparsers.add_parser("deploy", parents=[common], help="Run the deploy pipeline")
    _add_bool_flag(
        deploy, "-a", "--update-abis", help="Update the Synthetix package and contract ABIs"
    )
    _add_bool_flag(deploy, "-m", "--generate-main", help="Generate the main subgraph")
    deploy.add_argument("-s", "--subgraph", help="The subgraph to deploy to the hosted service")
    deploy.add_argument("-t", "--team", help="The Graph team name")
    deploy.add_argument("-k", "--access-token", help="The Graph access token")
    _add_bool_flag(deploy, "-p", "--prebuild", help="Run codegen and create contracts")
    deploy.add_argument("-n", "--network", help="Network to deploy on for the hosted service")
    _add_bool_flag(
        deploy, "-d", "--deploy-decentralized", help="Deploy to the decentralized network"
    )
    deploy.add_argument(
        "-v", "--version-label", help="Version label for the deployment to the decentralized network"
    )

    manifest = subparsers.add_parser("manifest", parents=[common], help="Write one manifest")
    manifest.add_argument("variant", choices=list(VARIANTS))
    manifest.add_argument("-n", "--network", help="Network to build for (default: $SNX_NETWORK)")
    manifest.add_argument("-o", "--output", help="Output file (default: stdout)")

    schema = subparsers.add_parser("schema", parents=[common], help="Regenerate the main schema")
    schema.add_argument("-o", "--output", help="Output file (default: subgraphs/main.graphql)")

    return parser


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env(root=args.root)
    if args.records:
        settings.records_path = Path(args.records)
    return settings


def _deploy(args: argparse.Namespace, console: Console) -> None:
    answers = {name: getattr(args, name) for name in ANSWER_FLAGS}
    ctx = PipelineContext(
        settings=_settings(args),
        decider=PresetDecider(answers, ConsoleDecider(console)),
        console=console,
    )
    run_pipeline(ctx)


def _manifest(args: argparse.Namespace, console: Console) -> None:
    settings = _settings(args)
    network = parse_network(args.network) if args.network else current_network()
    resolver = NetworkResolver(DeploymentRecords(settings.records_path), network)
    document = build_manifest(args.variant, resolver)
    if args.output:
        path = write_manifest(document, args.output)
        console.print(f"[green]Wrote {args.variant} manifest for {network.value} to {path}[/green]")
    else:
        sys.stdout.write(render_manifest(document))


def _schema(args: argparse.Namespace, console: Console) -> None:
    settings = _settings(args)
    sources = [get_schema_path(settings.root, name) for name in SUBGRAPH_CHOICES]
    path = write_merged_schema(sources, args.output or get_schema_path(settings.root))
    console.print(f"[green]Successfully generated the main schema at {path}.[/green]")


HANDLERS = {"deploy": _deploy, "manifest": _manifest, "schema": _schema}


def _with_command(argv: List[str]) -> List[str]:
    """Move the command in front of shared options given before it; deploy is the default."""
    if argv[:1] in (["-h"], ["--help"]):
        return argv
    index = 0
    while index < len(argv):
        token = argv[index]
        if token in COMMANDS:
            return [token, *argv[:index], *argv[index + 1 :]]
        if token in SHARED_VALUE_OPTIONS:
            index += 2
        elif token.startswith("-"):
            index += 1
        else:
            break
    return ["deploy", *argv]


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    argv = _with_command(argv)

    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    console = Console()
    try:
        HANDLERS[args.command](args, console)
    except ExternalCommandError as e:
        console.print(f"[red]Failed at stage {e.stage}[/red]")
        if e.network:
            console.print(f"[red]Network: {e.network}[/red]")
        console.print(str(e), style="red", markup=False, highlight=False)
        if e.stderr:
            console.print(e.stderr.rstrip(), markup=False, highlight=False)
        return 1
    except SubgraphDeployError as e:
        if e.stage:
            console.print(f"[red]Failed at stage {e.stage}[/red]")
        console.print(f"{type(e).__name__}: {e}", style="red", markup=False, highlight=False)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
