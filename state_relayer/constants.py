"""Constants and configuration defaults for the state relayer bot."""

from decimal import Decimal

# Reference currency all pair prices are expressed in.
DEFAULT_DENOMINATION = "USDT"
# Fixed-point precision used when encoding values for the contract.
DEFAULT_DECIMALS = 10
# Pool pairs are fetched in a single page of this size.
DEFAULT_POOL_PAIR_PAGE_SIZE = 200

DEFAULT_OCEAN_URL = "https://ocean.defichain.com"
DEFAULT_OCEAN_NETWORK = "mainnet"
OCEAN_API_VERSION = "v0"
DEFAULT_TIMEOUT = 30

# Display symbols containing this character are composite pairs and are never relayed.
COMPOSITE_PAIR_SEPARATOR = "/"

# Master-node lock terms in weeks, as reported by `stats.masternodes.locked[].weeks`.
ZERO_YEAR_WEEKS = 0
FIVE_YEAR_WEEKS = 260
TEN_YEAR_WEEKS = 520
# Positional fallback when buckets carry no `weeks` field (live bot order).
LOCKED_BUCKET_INDEX_BY_WEEKS = {
    ZERO_YEAR_WEEKS: 0,
    TEN_YEAR_WEEKS: 1,
    FIVE_YEAR_WEEKS: 2,
}

PERCENT = Decimal(100)

# Every relayed amount is a uint256 on-chain.
UINT256_MAX = 2**256 - 1
UINT256_DIGITS = len(str(UINT256_MAX))

# OpenZeppelin AccessControl roles.
DEFAULT_ADMIN_ROLE = b"\x00" * 32
BOT_ROLE_NAME = "BOT_ROLE"

# Address used by the in-process relayer when none is given.
DEFAULT_RELAYER_ADDRESS = "0x0000000000000000000000000000000000005e1a"

_DEX_INFO_COMPONENTS: list[dict] = [
    {"name": "primaryTokenPrice", "type": "uint256", "internalType": "uint256"},
    {"name": "volume24H", "type": "uint256", "internalType": "uint256"},
    {"name": "totalLiquidity", "type": "uint256", "internalType": "uint256"},
    {"name": "APR", "type": "uint256", "internalType": "uint256"},
    {"name": "firstTokenBalance", "type": "uint256", "internalType": "uint256"},
    {"name": "secondTokenBalance", "type": "uint256", "internalType": "uint256"},
    {"name": "rewards", "type": "uint256", "internalType": "uint256"},
    {"name": "commissions", "type": "uint256", "internalType": "uint256"},
    {"name": "lastUpdated", "type": "uint256", "internalType": "uint256"},
    {"name": "decimals", "type": "uint256", "internalType": "uint256"},
]

_MASTER_NODE_COMPONENTS: list[dict] = [
    {"name": "totalValueLockedInMasterNodes", "type": "uint256", "internalType": "uint256"},
    {"name": "zeroYearLocked", "type": "uint256", "internalType": "uint256"},
    {"name": "fiveYearLocked", "type": "uint256", "internalType": "uint256"},
    {"name": "tenYearLocked", "type": "uint256", "internalType": "uint256"},
    {"name": "lastUpdated", "type": "uint256", "internalType": "uint256"},
]

_VAULT_COMPONENTS: list[dict] = [
    {"name": "noOfVaults", "type": "uint256", "internalType": "uint256"},
    {"name": "totalLoanValue", "type": "uint256", "internalType": "uint256"},
    {"name": "totalCollateralValue", "type": "uint256", "internalType": "uint256"},
    {"name": "totalCollateralizationRatio", "type": "uint256", "internalType": "uint256"},
    {"name": "activeAuctions", "type": "uint256", "internalType": "uint256"},
    {"name": "lastUpdated", "type": "uint256", "internalType": "uint256"},
]

# ABI of the StateRelayer contract: relay entry points, batch entry point,
# AccessControl role management and the public state getters.
STATE_RELAYER_ABI: list[dict] = [
    {
        "type": "function",
        "name": "updateDEXInfo",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_dex", "type": "string[]", "internalType": "string[]"},
            {
                "name": "_dexInfo",
                "type": "tuple[]",
                "internalType": "struct IStateRelayer.DEXInfo[]",
                "components": _DEX_INFO_COMPONENTS,
            },
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "updateMasterNodeInformation",
        "stateMutability": "nonpayable",
        "inputs": [
            {
                "name": "_masterNodeInformation",
                "type": "tuple",
                "internalType": "struct IStateRelayer.MasterNodeInformation",
                "components": _MASTER_NODE_COMPONENTS,
            }
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "updateVaultGeneralInformation",
        "stateMutability": "nonpayable",
        "inputs": [
            {
                "name": "_vaultInfo",
                "type": "tuple",
                "internalType": "struct IStateRelayer.VaultGeneralInformation",
                "components": _VAULT_COMPONENTS,
            }
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "batchCallByBot",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "funcCalls", "type": "bytes[]", "internalType": "bytes[]"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "grantRole",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "role", "type": "bytes32", "internalType": "bytes32"},
            {"name": "account", "type": "address", "internalType": "address"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "revokeRole",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "role", "type": "bytes32", "internalType": "bytes32"},
            {"name": "account", "type": "address", "internalType": "address"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "hasRole",
        "stateMutability": "view",
        "inputs": [
            {"name": "role", "type": "bytes32", "internalType": "bytes32"},
            {"name": "account", "type": "address", "internalType": "address"},
        ],
        "outputs": [{"name": "", "type": "bool", "internalType": "bool"}],
    },
    {
        "type": "function",
        "name": "BOT_ROLE",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "bytes32", "internalType": "bytes32"}],
    },
    {
        "type": "function",
        "name": "DEFAULT_ADMIN_ROLE",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "bytes32", "internalType": "bytes32"}],
    },
    {
        "type": "function",
        "name": "DEXInfoMapping",
        "stateMutability": "view",
        "inputs": [{"name": "symbol", "type": "string", "internalType": "string"}],
        "outputs": [{"name": c["name"], "type": c["type"]} for c in _DEX_INFO_COMPONENTS],
    },
    {
        "type": "function",
        "name": "masterNodeInformation",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": c["name"], "type": c["type"]} for c in _MASTER_NODE_COMPONENTS],
    },
    {
        "type": "function",
        "name": "vaultInfo",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": c["name"], "type": c["type"]} for c in _VAULT_COMPONENTS],
    },
    {
        "type": "event",
        "name": "UpdateDEXInfo",
        "anonymous": False,
        "inputs": [
            {"name": "dex", "type": "string[]", "indexed": False},
            {"name": "dexInfo", "type": "tuple[]", "indexed": False, "components": _DEX_INFO_COMPONENTS},
            {"name": "timestamp", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "UpdateMasterNodeInformation",
        "anonymous": False,
        "inputs": [
            {
                "name": "masterNodeInformation",
                "type": "tuple",
                "indexed": False,
                "components": _MASTER_NODE_COMPONENTS,
            },
            {"name": "timestamp", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "UpdateVaultGeneralInformation",
        "anonymous": False,
        "inputs": [
            {"name": "vaultInfo", "type": "tuple", "indexed": False, "components": _VAULT_COMPONENTS},
            {"name": "timestamp", "type": "uint256", "indexed": False},
        ],
    },
]

# Relay entry points in the order the orchestrator submits them.
UPDATE_DEX_INFO = "updateDEXInfo"
UPDATE_MASTER_NODE_INFORMATION = "updateMasterNodeInformation"
UPDATE_VAULT_GENERAL_INFORMATION = "updateVaultGeneralInformation"
BATCH_CALL_BY_BOT = "batchCallByBot"

DEX_INFO_FIELDS = [c["name"] for c in _DEX_INFO_COMPONENTS]
MASTER_NODE_FIELDS = [c["name"] for c in _MASTER_NODE_COMPONENTS]
VAULT_FIELDS = [c["name"] for c in _VAULT_COMPONENTS]
