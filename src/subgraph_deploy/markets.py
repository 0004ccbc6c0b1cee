"""Market family definitions and the manifest variants built from them."""

from typing import Callable, Dict, List

from .constants import MAIN_SUBGRAPH, NetworkId
from .exceptions import ManifestError
from .manifests import (
    AddressTable,
    DeploymentLookup,
    asset_data_sources,
    assemble_manifest,
    manager_data_sources,
    singleton_data_source,
    template,
)
from .types import (
    AbiReference,
    DataSourceManifest,
    EventHandlerBinding,
    ManifestDocument,
    Mapping,
    TemplateManifest,
)

FUTURES_MARKET = "futures"
PERPS_MARKET = "perps"
RATES_MARKET = "rates"

MANAGER_CONTRACT = "FuturesMarketManager"

# Handler bound to MarketAdded per variant. The event signature is the same in
# every variant; the handler moved from V1 to V2 without an ABI change.
MARKET_ADDED_HANDLERS: Dict[str, str] = {
    FUTURES_MARKET: "handleV1MarketAdded",
    PERPS_MARKET: "handleV2MarketAdded",
    MAIN_SUBGRAPH: "handleV2MarketAdded",
}

# The perps manifest indexes manager contracts from genesis
PERPS_MANAGER_START_BLOCK = 0

CROSS_MARGIN_FACTORY = AddressTable(
    contract="MarginAccountFactory",
    addresses={
        NetworkId.OPTIMISM: "0x8e43BF1910ad1461EEe0Daca10547c7e6d9D2f36",
        NetworkId.OPTIMISM_GOERLI: "0x9320170B37eDEb4f41cb6E5A8F82B984aD9c44eE",
    },
    # every other network shares the goerli test deployment
    fallback=NetworkId.OPTIMISM_GOERLI,
)

# Synth assets with one price aggregator contract each, named "Aggregator{asset}"
RATE_ASSETS = ("sETH", "sBTC", "sLINK")

FUTURES_MAPPING_FILE = "../src/futures.ts"
CROSS_MARGIN_MAPPING_FILE = "../src/crossmargin.ts"
RATES_MAPPING_FILE = "../src/rates.ts"

MARGIN_TRANSFERRED = EventHandlerBinding(
    "MarginTransferred(indexed address,int256)", "handleMarginTransferred"
)
POSITION_MODIFIED = EventHandlerBinding(
    "PositionModified(indexed uint256,indexed address,uint256,int256,int256,uint256,uint256,uint256)",
    "handlePositionModified",
)
MARKET_ENTITIES = ["FuturesMarket", "FuturesPosition", "FuturesTrade"]


def _abi(name: str) -> AbiReference:
    return AbiReference(name, f"../abis/{name}.json")


def manager_mapping(added_handler: str) -> Mapping:
    return Mapping(
        file=FUTURES_MAPPING_FILE,
        entities=["FuturesMarket"],
        abis=[_abi("FuturesMarket"), _abi(MANAGER_CONTRACT)],
        event_handlers=[
            EventHandlerBinding(
                "MarketAdded(address,indexed bytes32,indexed bytes32)", added_handler
            ),
            EventHandlerBinding(
                "MarketRemoved(address,indexed bytes32,indexed bytes32)", "handleMarketRemoved"
            ),
        ],
    )


CROSS_MARGIN_MAPPING = Mapping(
    file=CROSS_MARGIN_MAPPING_FILE,
    entities=["MarginAccountFactory"],
    abis=[_abi("MarginAccountFactory")],
    event_handlers=[EventHandlerBinding("NewAccount(indexed address,address)", "handleNewAccount")],
)

MARGIN_BASE_MAPPING = Mapping(
    file=CROSS_MARGIN_MAPPING_FILE,
    entities=["MarginBase"],
    abis=[_abi("MarginBase")],
    event_handlers=[],
)

FUTURES_MARKET_MAPPING = Mapping(
    file=FUTURES_MAPPING_FILE,
    entities=MARKET_ENTITIES,
    abis=[_abi("FuturesMarket")],
    event_handlers=[
        MARGIN_TRANSFERRED,
        POSITION_MODIFIED,
        EventHandlerBinding(
            "PositionLiquidated(indexed uint256,indexed address,indexed address,int256,uint256,uint256)",
            "handlePositionLiquidated",
        ),
        EventHandlerBinding("FundingRecomputed(int256,uint256,uint256)", "handleFundingRecomputed"),
        EventHandlerBinding(
            "NextPriceOrderSubmitted(indexed address,int256,uint256,uint256,uint256,bytes32)",
            "handleNextPriceOrderSubmitted",
        ),
        EventHandlerBinding(
            "NextPriceOrderRemoved(indexed address,uint256,int256,uint256,uint256,uint256,bytes32)",
            "handleNextPriceOrderRemoved",
        ),
    ],
)

PERPS_MARKET_MAPPING = Mapping(
    file=FUTURES_MAPPING_FILE,
    entities=MARKET_ENTITIES,
    abis=[_abi("PerpsV2MarketProxyable")],
    event_handlers=[
        MARGIN_TRANSFERRED,
        POSITION_MODIFIED,
        # PerpsV2 emits this event without indexed arguments
        EventHandlerBinding(
            "PositionLiquidated(uint256,address,address,int256,uint256,uint256)",
            "handlePositionLiquidated",
        ),
        EventHandlerBinding(
            "DelayedOrderSubmitted(indexed address,bool,int256,uint256,uint256,uint256,uint256,uint256,bytes32)",
            "handleDelayedOrderSubmitted",
        ),
        EventHandlerBinding(
            "DelayedOrderRemoved(indexed address,bool,uint256,int256,uint256,uint256,uint256,bytes32)",
            "handleDelayedOrderRemoved",
        ),
    ],
)

AGGREGATOR_MAPPING = Mapping(
    file=RATES_MAPPING_FILE,
    entities=["LatestRate", "RateUpdate"],
    abis=[_abi("Aggregator")],
    event_handlers=[
        EventHandlerBinding(
            "AnswerUpdated(indexed int256,indexed uint256,uint256)", "handleAnswerUpdated"
        ),
    ],
)


def margin_base_template(network: NetworkId) -> TemplateManifest:
    return template("MarginBase", network, "MarginBase", MARGIN_BASE_MAPPING)


def futures_market_template(network: NetworkId) -> TemplateManifest:
    return template("FuturesMarket", network, "FuturesMarket", FUTURES_MARKET_MAPPING)


def perps_market_template(network: NetworkId) -> TemplateManifest:
    return template("PerpsMarket", network, "PerpsV2MarketProxyable", PERPS_MARKET_MAPPING)


def main_templates(network: NetworkId) -> List[TemplateManifest]:
    """Every dynamically created contract type, each declared once."""
    return [
        margin_base_template(network),
        futures_market_template(network),
        perps_market_template(network),
    ]


def cross_margin_data_source(network: NetworkId) -> DataSourceManifest:
    return singleton_data_source(
        CROSS_MARGIN_FACTORY, "crossmargin_factory", network, CROSS_MARGIN_MAPPING
    )


def rate_data_sources(resolver: DeploymentLookup) -> List[DataSourceManifest]:
    return asset_data_sources(
        resolver,
        RATES_MARKET,
        [f"Aggregator{asset}" for asset in RATE_ASSETS],
        "Aggregator",
        AGGREGATOR_MAPPING,
    )


def build_futures_manifest(resolver: DeploymentLookup) -> ManifestDocument:
    """Futures v1 markets, cross margin accounts and perps v2 markets."""
    network = resolver.network
    data_sources = manager_data_sources(
        resolver,
        FUTURES_MARKET,
        MANAGER_CONTRACT,
        manager_mapping(MARKET_ADDED_HANDLERS[FUTURES_MARKET]),
    )
    data_sources.append(cross_margin_data_source(network))
    return assemble_manifest(
        "./futures.graphql",
        data_sources,
        main_templates(network),
    )


def build_perps_manifest(resolver: DeploymentLookup) -> ManifestDocument:
    """Perps v2 markets only."""
    # Data sources keep the futures prefix so entity ids line up with the futures manifest
    data_sources = manager_data_sources(
        resolver,
        FUTURES_MARKET,
        MANAGER_CONTRACT,
        manager_mapping(MARKET_ADDED_HANDLERS[PERPS_MARKET]),
        start_block=PERPS_MANAGER_START_BLOCK,
    )
    return assemble_manifest(
        "./perps.graphql", data_sources, [perps_market_template(resolver.network)]
    )


def build_rates_manifest(resolver: DeploymentLookup) -> ManifestDocument:
    """Price feeds, one data source per synth aggregator deployment."""
    return assemble_manifest("./rates.graphql", rate_data_sources(resolver))


def build_main_manifest(resolver: DeploymentLookup) -> ManifestDocument:
    """Every market family combined, using the main handler bindings."""
    network = resolver.network
    data_sources = manager_data_sources(
        resolver,
        FUTURES_MARKET,
        MANAGER_CONTRACT,
        manager_mapping(MARKET_ADDED_HANDLERS[MAIN_SUBGRAPH]),
    )
    data_sources.append(cross_margin_data_source(network))
    data_sources.extend(rate_data_sources(resolver))
    return assemble_manifest(
        f"./{MAIN_SUBGRAPH}.graphql",
        data_sources,
        main_templates(network),
    )


VARIANTS: Dict[str, Callable[[DeploymentLookup], ManifestDocument]] = {
    FUTURES_MARKET: build_futures_manifest,
    PERPS_MARKET: build_perps_manifest,
    RATES_MARKET: build_rates_manifest,
    MAIN_SUBGRAPH: build_main_manifest,
}

# Per-market variants; their schemas are merged into the main schema
SUBGRAPH_CHOICES = [name for name in VARIANTS if name != MAIN_SUBGRAPH]


def build_manifest(variant: str, resolver: DeploymentLookup) -> ManifestDocument:
    """
    Build the manifest for a named variant.

    Raises:
        ManifestError: If the variant is unknown
        InvalidDeploymentRecordError: If a deployment record is malformed
    """
    try:
        builder = VARIANTS[variant]
    except KeyError:
        raise ManifestError(
            f"Unknown subgraph '{variant}'; expected one of: {', '.join(VARIANTS)}"
        ) from None
    return builder(resolver)
