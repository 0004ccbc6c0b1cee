"""
Interactive build and deploy pipeline for the subgraph manifests.

Stages run strictly in order. Each stage receives the current DeploymentPlan
and returns an updated copy; any external command failure ends the run with
ExternalCommandError. Nothing is retried or rolled back, and a rerun starts
from the first stage.
"""

import logging
import shutil
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from rich.console import Console

from .commands import CommandRunner, run_command
from .config import Settings
from .constants import (
    CODEGEN_NETWORK,
    DECENTRALIZED_NETWORK,
    MAIN_SUBGRAPH,
    NETWORK_ENV,
    SUBGRAPH_ENV,
    NetworkId,
)
from .exceptions import ConfigurationError, ManifestError, SubgraphDeployError
from .manifests import DeploymentLookup, write_manifest
from .markets import RATES_MARKET, SUBGRAPH_CHOICES, build_manifest, main_templates
from .network import NetworkResolver, parse_network
from .paths import (
    get_build_dir,
    get_generated_dir,
    get_manifest_path,
    get_schema_path,
)
from .prompts import Decider
from .records import DeploymentRecords, download_records
from .schema import merge_schema_files, missing_entities, write_schema_document
from .types import DeploymentPlan

logger = logging.getLogger(__name__)

ALL_NETWORKS = "All"
NO_NETWORKS = "None"

# Generated artifact that belongs to the rates subgraph whichever target produced it
RELOCATED_ARTIFACT = "ChainlinkMultisig"


class Stage(Enum):
    REFRESH_DEPENDENCIES = "RefreshDependencies"
    REGENERATE_MANIFEST = "RegenerateManifest"
    SELECT_TARGET = "SelectTarget"
    SELECT_CREDENTIALS = "SelectCredentials"
    CODEGEN = "Codegen"
    CREATE_CONTRACTS = "CreateContracts"
    POST_PROCESS_ARTIFACTS = "PostProcessArtifacts"
    SELECT_NETWORKS = "SelectNetworks"
    BUILD_AND_DEPLOY_HOSTED = "BuildAndDeployHosted"
    CONFIRM_DECENTRALIZED = "ConfirmDecentralized"
    SELECT_VERSION_LABEL = "SelectVersionLabel"
    DEPLOY_DECENTRALIZED = "DeployDecentralized"
    DONE = "Done"


@dataclass
class PipelineContext:
    """Collaborators shared by every stage."""

    settings: Settings
    decider: Decider
    run: CommandRunner = run_command
    console: Console = field(default_factory=Console)
    resolver_factory: Optional[Callable[[NetworkId], DeploymentLookup]] = None

    def resolver(self, network: NetworkId) -> DeploymentLookup:
        if self.resolver_factory is not None:
            return self.resolver_factory(network)
        # Loaded on demand so a refresh earlier in the run is picked up
        return NetworkResolver(DeploymentRecords(self.settings.records_path), network)

    def command_env(self, network: NetworkId, subgraph: Optional[str] = None) -> Dict[str, str]:
        env = {NETWORK_ENV: network.value}
        if subgraph is not None:
            env[SUBGRAPH_ENV] = subgraph
        return env

    def write_manifest_for(self, subgraph: str, network: NetworkId):
        document = build_manifest(subgraph, self.resolver(network))
        return write_manifest(document, get_manifest_path(self.settings.root, subgraph))


def hosted_name(team: str, network: str, subgraph: str) -> str:
    """Hosted-service subgraph name; mainnet deploys carry no network prefix."""
    prefix = "" if network == NetworkId.MAINNET.value else f"{network}-"
    return f"{team}/{prefix}{subgraph}"


def refresh_dependencies(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    ctx.console.print("[cyan]Updating the Synthetix package and contract ABIs...[/cyan]")
    update_abis = ctx.decider.confirm("update_abis", "Continue?")
    if update_abis:
        stage = Stage.REFRESH_DEPENDENCIES.value
        ctx.run(ctx.settings.update_package_command, stage, cwd=ctx.settings.root)
        ctx.console.print(
            "[green]Successfully updated the Synthetix package for the most recent contracts.[/green]"
        )
        ctx.run(ctx.settings.prepare_abis_command, stage, cwd=ctx.settings.root)
        ctx.console.print("[green]Successfully prepared the ABI files for subgraph generation.[/green]")
        if ctx.settings.records_url:
            download_records(ctx.settings.records_url, ctx.settings.records_path)
            ctx.console.print("[green]Successfully refreshed the deployment records.[/green]")
    return replace(plan, update_abis=update_abis)


def regenerate_manifest(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    ctx.console.print("[cyan]Generating the main subgraph...[/cyan]")
    generate_main = ctx.decider.confirm("generate_main", "Continue?")
    if generate_main:
        root = ctx.settings.root
        document = merge_schema_files([get_schema_path(root, name) for name in SUBGRAPH_CHOICES])

        entities = dict.fromkeys(
            entity
            for entry in main_templates(CODEGEN_NETWORK)
            for entity in entry.mapping.entities
        )
        missing = missing_entities(entities, document)
        if missing:
            raise ManifestError(
                f"Merged schema is missing entities used by templates: {', '.join(missing)}"
            )

        write_schema_document(document, get_schema_path(root, MAIN_SUBGRAPH))
        ctx.console.print("[green]Successfully generated the main subgraph.[/green]")
    return replace(plan, generate_main=generate_main)


def select_target(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    subgraph = ctx.decider.choose(
        "subgraph",
        "Which subgraph would you like to deploy? "
        "[grey50]You should only deploy subgraphs other than the main subgraph "
        "for development and testing.[/grey50]",
        [MAIN_SUBGRAPH, *SUBGRAPH_CHOICES],
        default=MAIN_SUBGRAPH,
    )
    return replace(plan, subgraph=subgraph)


def select_credentials(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    team = ctx.decider.text("team", "What is your team name on The Graph?", default=ctx.settings.team)
    access_token = ctx.decider.text(
        "access_token", "What is your access token for The Graph?", secret=True
    )
    if not team:
        raise ConfigurationError("A team name on The Graph is required")
    if not access_token:
        raise ConfigurationError("An access token for The Graph is required")
    return replace(plan, team=team, access_token=access_token)


def codegen(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    ctx.console.print("[grey50]Executing prebuild steps:[/grey50]")
    prebuild = ctx.decider.confirm("prebuild", "Run codegen and create contracts?")
    if not prebuild:
        return replace(plan, prebuild=False)

    ctx.console.print("[cyan]Running The Graph's codegen...[/cyan]")
    root = ctx.settings.root
    for subgraph in SUBGRAPH_CHOICES:
        manifest = ctx.write_manifest_for(subgraph, CODEGEN_NETWORK)
        ctx.run(
            [
                ctx.settings.graph_cli,
                "codegen",
                str(manifest),
                "-o",
                str(get_generated_dir(root, subgraph)),
            ],
            Stage.CODEGEN.value,
            env=ctx.command_env(CODEGEN_NETWORK, subgraph),
            cwd=root,
        )
    return replace(plan, prebuild=True)


def create_contracts(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    if plan.prebuild:
        ctx.console.print("[cyan]Creating contracts...[/cyan]")
        ctx.run(
            ctx.settings.create_contracts_command,
            Stage.CREATE_CONTRACTS.value,
            cwd=ctx.settings.root,
        )
    return plan


def post_process_artifacts(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    if plan.subgraph == RATES_MARKET:
        return plan

    source = get_generated_dir(ctx.settings.root, plan.subgraph) / RELOCATED_ARTIFACT
    if source.exists():
        ctx.console.print(f"[cyan]Moving {RELOCATED_ARTIFACT}...[/cyan]")
        destination = get_generated_dir(ctx.settings.root, RATES_MARKET) / RELOCATED_ARTIFACT
        destination.parent.mkdir(parents=True, exist_ok=True)
        if destination.exists():
            shutil.rmtree(destination)
        shutil.move(str(source), str(destination))
    return plan


def select_networks(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    network = ctx.decider.choose(
        "network",
        "Where would you like to deploy the subgraphs on the hosted service?",
        [ALL_NETWORKS, NO_NETWORKS, *ctx.settings.hosted_networks],
        default=ALL_NETWORKS,
    )
    return replace(plan, network=network)


def selected_networks(plan: DeploymentPlan, ctx: PipelineContext) -> List[str]:
    if plan.network == NO_NETWORKS:
        return []
    if plan.network == ALL_NETWORKS:
        return list(ctx.settings.hosted_networks)
    return [plan.network]


def build_and_deploy_hosted(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    networks = selected_networks(plan, ctx)
    if not networks:
        return plan

    ctx.console.print("[cyan]Building and deploying the subgraphs to the hosted service...[/cyan]")
    stage = Stage.BUILD_AND_DEPLOY_HOSTED.value
    root = ctx.settings.root

    # One network at a time; the first failure stops the remaining networks
    for name in networks:
        network = parse_network(name)
        env = ctx.command_env(network, plan.subgraph)
        manifest = ctx.write_manifest_for(plan.subgraph, network)

        ctx.run(
            [
                ctx.settings.graph_cli,
                "build",
                str(manifest),
                "-o",
                str(get_build_dir(root, network.value, plan.subgraph)),
            ],
            stage,
            env=env,
            cwd=root,
            network=network.value,
        )
        ctx.run(
            [
                ctx.settings.graph_cli,
                "deploy",
                "--node",
                ctx.settings.node_url,
                "--ipfs",
                ctx.settings.ipfs_url,
                "--access-token",
                plan.access_token,
                hosted_name(plan.team, network.value, plan.subgraph),
                str(manifest),
            ],
            stage,
            env=env,
            cwd=root,
            network=network.value,
        )
        ctx.console.print(f"[green]Successfully deployed to {network.value} on the hosted service.[/green]")
    return plan


def confirm_decentralized(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    deploy = ctx.decider.confirm(
        "deploy_decentralized",
        "Would you like to deploy the main subgraph to the decentralized network?",
        default=False,
    )
    return replace(plan, deploy_decentralized=deploy)


def select_version_label(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    if not plan.deploy_decentralized:
        return plan
    version_label = ctx.decider.text(
        "version_label",
        "What version label should be used for this release?",
        default=ctx.settings.package_version(),
    )
    if not version_label:
        raise ConfigurationError("A version label is required for a decentralized deploy")
    return replace(plan, version_label=version_label)


def deploy_decentralized(plan: DeploymentPlan, ctx: PipelineContext) -> DeploymentPlan:
    if not plan.deploy_decentralized:
        return plan

    ctx.console.print("Deploying to decentralized network...")
    manifest = ctx.write_manifest_for(MAIN_SUBGRAPH, DECENTRALIZED_NETWORK)
    ctx.run(
        [
            ctx.settings.graph_cli,
            "deploy",
            "--studio",
            plan.team,
            "--version-label",
            plan.version_label,
            "--access-token",
            plan.access_token,
            str(manifest),
        ],
        Stage.DEPLOY_DECENTRALIZED.value,
        env=ctx.command_env(DECENTRALIZED_NETWORK, MAIN_SUBGRAPH),
        cwd=ctx.settings.root,
        network=DECENTRALIZED_NETWORK.value,
    )
    ctx.console.print("[green]Successfully deployed to decentralized network.[/green]")
    return plan


STAGES: List[Tuple[Stage, Callable[[DeploymentPlan, PipelineContext], DeploymentPlan]]] = [
    (Stage.REFRESH_DEPENDENCIES, refresh_dependencies),
    (Stage.REGENERATE_MANIFEST, regenerate_manifest),
    (Stage.SELECT_TARGET, select_target),
    (Stage.SELECT_CREDENTIALS, select_credentials),
    (Stage.CODEGEN, codegen),
    (Stage.CREATE_CONTRACTS, create_contracts),
    (Stage.POST_PROCESS_ARTIFACTS, post_process_artifacts),
    (Stage.SELECT_NETWORKS, select_networks),
    (Stage.BUILD_AND_DEPLOY_HOSTED, build_and_deploy_hosted),
    (Stage.CONFIRM_DECENTRALIZED, confirm_decentralized),
    (Stage.SELECT_VERSION_LABEL, select_version_label),
    (Stage.DEPLOY_DECENTRALIZED, deploy_decentralized),
]


def run_pipeline(ctx: PipelineContext, plan: Optional[DeploymentPlan] = None) -> DeploymentPlan:
    """
    Run every stage in order.

    Args:
        ctx: Shared collaborators
        plan: Starting plan (defaults to an empty one)

    Returns:
        The final plan

    Raises:
        ExternalCommandError: If any external command fails
        ConfigurationError: If a required answer is missing or invalid
        SubgraphDeployError: Any other failure, with its stage set
    """
    if plan is None:
        plan = DeploymentPlan()
    for stage, step in STAGES:
        logger.debug("Entering stage %s", stage.value)
        try:
            plan = step(plan, ctx)
        except SubgraphDeployError as e:
            if e.stage is None:
                e.stage = stage.value
            raise
    logger.info("Pipeline reached %s", Stage.DONE.value)
    return plan
