"""Contract ABIs and selector helpers."""

from typing import Any, Dict, List, Tuple

from eth_utils import keccak

ERC20_ABI = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}]
    },
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"}
        ],
        "outputs": [{"name": "", "type": "uint256"}]
    },
    {
        "name": "approve",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"}
        ],
        "outputs": [{"name": "", "type": "bool"}]
    }
]

ORDER_COMPONENTS = [
    {"name": "salt", "type": "uint256"},
    {"name": "maker", "type": "uint256"},
    {"name": "receiver", "type": "uint256"},
    {"name": "makerAsset", "type": "uint256"},
    {"name": "takerAsset", "type": "uint256"},
    {"name": "makingAmount", "type": "uint256"},
    {"name": "takingAmount", "type": "uint256"},
    {"name": "makerTraits", "type": "uint256"},
]

PROTOCOL_ERROR_NAMES = [
    "BadSignature",
    "OrderExpired",
    "InvalidatedOrder",
    "TakingAmountExceeded",
    "MakingAmountTooLow",
    "PrivateOrder",
    "PredicateIsNotTrue",
    "TransferFromMakerToTakerFailed",
    "TransferFromTakerToMakerFailed",
]

LIMIT_ORDER_PROTOCOL_ABI = [
    {
        "name": "fillOrder",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "order", "type": "tuple", "components": ORDER_COMPONENTS},
            {"name": "r", "type": "bytes32"},
            {"name": "vs", "type": "bytes32"},
            {"name": "amount", "type": "uint256"},
            {"name": "takerTraits", "type": "uint256"}
        ],
        "outputs": [
            {"name": "", "type": "uint256"},
            {"name": "", "type": "uint256"},
            {"name": "", "type": "bytes32"}
        ]
    },
    {
        "name": "remainingInvalidatorForOrder",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "maker", "type": "address"},
            {"name": "orderHash", "type": "bytes32"}
        ],
        "outputs": [{"name": "", "type": "uint256"}]
    },
] + [{"name": name, "type": "error", "inputs": []} for name in PROTOCOL_ERROR_NAMES]

# Built-in Solidity errors, decoded alongside the protocol's custom errors
SOLIDITY_ERROR_ABI = [
    {"name": "Error", "type": "error", "inputs": [{"name": "message", "type": "string"}]},
    {"name": "Panic", "type": "error", "inputs": [{"name": "code", "type": "uint256"}]},
]


def abi_type(param: Dict[str, Any]) -> str:
    """Canonical type string of an ABI parameter, expanding tuples."""
    type_str = param["type"]
    if type_str.startswith("tuple"):
        inner = ",".join(abi_type(c) for c in param["components"])
        return f"({inner}){type_str[len('tuple'):]}"
    return type_str


def input_types(entry: Dict[str, Any]) -> List[str]:
    return [abi_type(p) for p in entry.get("inputs", [])]


def abi_signature(entry: Dict[str, Any]) -> str:
    """Signature such as 'approve(address,uint256)'."""
    return f"{entry['name']}({','.join(input_types(entry))})"


def selector(signature: str) -> bytes:
    """First four bytes of keccak256(signature)."""
    return keccak(text=signature)[:4]


def find_entry(abi: List[Dict[str, Any]], name: str, entry_type: str = "function") -> Dict[str, Any]:
    for entry in abi:
        if entry.get("type") == entry_type and entry.get("name") == name:
            return entry
    raise KeyError(f"{entry_type} {name} not found in ABI")


def function_selector(abi: List[Dict[str, Any]], name: str) -> bytes:
    return selector(abi_signature(find_entry(abi, name)))


def error_selectors(abi: List[Dict[str, Any]]) -> Dict[str, Tuple[str, List[str]]]:
    """Map 0x-prefixed selector -> (error name, argument types)."""
    result = {}
    for entry in abi:
        if entry.get("type") != "error":
            continue
        key = "0x" + selector(abi_signature(entry)).hex()
        result[key] = (entry["name"], input_types(entry))
    return result
