"""Configuration constants for subgraph-deploy."""

from enum import Enum


class NetworkId(Enum):
    """
    Networks the manifests can be built for.

    Value strings are the network names graph-node expects in a manifest.
    """

    MAINNET = "mainnet"
    KOVAN = "kovan"
    OPTIMISM = "optimism"
    OPTIMISM_KOVAN = "optimism-kovan"
    OPTIMISM_GOERLI = "optimism-goerli"


# Environment variable holding the active network, shared with the graph CLI calls
NETWORK_ENV = "SNX_NETWORK"
SUBGRAPH_ENV = "SUBGRAPH"

# Networks offered for hosted-service deploys, in fan-out order
HOSTED_NETWORKS = [
    NetworkId.MAINNET,
    NetworkId.KOVAN,
    NetworkId.OPTIMISM,
    NetworkId.OPTIMISM_KOVAN,
]

# Codegen always runs against this network
CODEGEN_NETWORK = NetworkId.MAINNET

# The decentralized network only serves the main manifest on this network
DECENTRALIZED_NETWORK = NetworkId.MAINNET

HOSTED_NODE_URL = "https://api.thegraph.com/deploy/"
HOSTED_IPFS_URL = "https://api.thegraph.com/ipfs/"
DEFAULT_TEAM = "synthetixio-team"

# Package that ships contract ABIs and deployment records
RECORDS_PACKAGE = "synthetix"

MAIN_SUBGRAPH = "main"

# Manifest constants shared by every variant
SPEC_VERSION = "0.0.4"
API_VERSION = "0.0.6"
CONTRACT_KIND = "ethereum/contract"
MAPPING_KIND = "ethereum/events"
MAPPING_LANGUAGE = "wasm/assemblyscript"
DESCRIPTION = "Kwenta Futures API"
REPOSITORY = "https://github.com/kwenta/kwenta-subgraph"
