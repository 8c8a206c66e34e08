"""Configuration: environment settings and static token tables."""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigError, ValidationError
from .utils import normalize_private_key

POLYGON_CHAIN_ID = 137

LIMIT_ORDER_PROTOCOL_ADDRESS = "0x111111125421ca6dc452d289314280a0f8842a65"

DEFAULT_EXPIRATION_MINUTES = 60
DEFAULT_HTTP_TIMEOUT = 10.0

QUOTE_SOURCES = ("filler", "fixed")

# Settings field -> environment variable
ENV_VARS = {
    "rpc_url": "POLYGON_RPC_URL",
    "filler_api_url": "FILLER_API_URL",
    "maker_private_key": "MAKER_PRIVATE_KEY",
    "taker_private_key": "TAKER_PRIVATE_KEY",
    "order_path": "ORDER_PATH",
}


@dataclass(frozen=True)
class Token:
    """ERC-20 token on Polygon."""
    address: str
    decimals: int
    symbol: str


@dataclass(frozen=True)
class TradingPair:
    """Source token sold by the maker, output token received."""
    source: Token
    output: Token


TOKENS: Dict[str, Token] = {
    "USDC": Token("0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359", 6, "USDC"),
    "USDT": Token("0xc2132D05D31c914a87C6611C10748AEb04B58e8F", 6, "USDT"),
    "BRLA": Token("0xE6A537a407488807F0bbeb0038B79004f19DDDFb", 18, "BRLA"),
}

VALID_PAIRS: List[TradingPair] = [
    TradingPair(TOKENS["USDC"], TOKENS["BRLA"]),
    TradingPair(TOKENS["USDT"], TOKENS["BRLA"]),
    TradingPair(TOKENS["BRLA"], TOKENS["USDC"]),
    TradingPair(TOKENS["BRLA"], TOKENS["USDT"]),
]

DEFAULT_PAIR = VALID_PAIRS[0]

# Output units per source unit
FIXED_RATES: Dict[Tuple[str, str], Decimal] = {
    ("USDC", "BRLA"): Decimal("5"),
    ("USDT", "BRLA"): Decimal("5"),
    ("BRLA", "USDC"): Decimal("0.2"),
    ("BRLA", "USDT"): Decimal("0.2"),
}


def pair_label(pair: TradingPair) -> str:
    """Human label such as 'USDC -> BRLA'."""
    return f"{pair.source.symbol} -> {pair.output.symbol}"


def get_pair(number: int) -> TradingPair:
    """Get a trading pair by its 1-based menu number."""
    if number < 1 or number > len(VALID_PAIRS):
        raise ValidationError(f"Invalid pair selection: {number} (choose 1-{len(VALID_PAIRS)})")
    return VALID_PAIRS[number - 1]


def get_token_by_address(address: str) -> Optional[Token]:
    """Look up a token by address, case-insensitively."""
    lower = address.lower()
    for token in TOKENS.values():
        if token.address.lower() == lower:
            return token
    return None


def get_token_by_symbol(symbol: str) -> Optional[Token]:
    """Look up a token by symbol."""
    return TOKENS.get(symbol.upper())


@dataclass(frozen=True)
class Settings:
    """Process settings, built once at startup and passed to every component."""
    rpc_url: Optional[str] = None
    filler_api_url: Optional[str] = None
    maker_private_key: Optional[str] = None
    taker_private_key: Optional[str] = None
    order_path: Optional[str] = None
    quote_source: str = "filler"
    chain_id: int = POLYGON_CHAIN_ID
    protocol_address: str = LIMIT_ORDER_PROTOCOL_ADDRESS
    expiration_minutes: int = DEFAULT_EXPIRATION_MINUTES
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    fixed_rates: Mapping[Tuple[str, str], Decimal] = field(default_factory=lambda: dict(FIXED_RATES))

    def require(self, name: str) -> str:
        """Return a required setting or raise ConfigError naming its variable."""
        value = getattr(self, name)
        if not value:
            env_var = ENV_VARS.get(name, name.upper())
            raise ConfigError(f"{env_var} environment variable is required.")
        return value

    def maker_key(self) -> str:
        return normalize_private_key(self.require("maker_private_key"))

    def taker_key(self) -> str:
        return normalize_private_key(self.require("taker_private_key"))


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name, "").strip()
    return value or None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Load settings from the environment (and a .env file when present)."""
    if environ is None:
        load_dotenv()
        environ = os.environ

    quote_source = (_env(environ, "QUOTE_SOURCE") or "filler").lower()
    if quote_source not in QUOTE_SOURCES:
        raise ConfigError(
            f"QUOTE_SOURCE must be one of {', '.join(QUOTE_SOURCES)}, got {quote_source!r}"
        )

    try:
        expiration_minutes = int(_env(environ, "ORDER_EXPIRATION_MINUTES") or DEFAULT_EXPIRATION_MINUTES)
        http_timeout = float(_env(environ, "HTTP_TIMEOUT") or DEFAULT_HTTP_TIMEOUT)
    except ValueError as e:
        raise ConfigError(f"Invalid numeric setting: {e}")

    if expiration_minutes <= 0:
        raise ConfigError("ORDER_EXPIRATION_MINUTES must be greater than zero.")

    return Settings(
        rpc_url=_env(environ, "POLYGON_RPC_URL"),
        filler_api_url=_env(environ, "FILLER_API_URL"),
        maker_private_key=_env(environ, "MAKER_PRIVATE_KEY"),
        taker_private_key=_env(environ, "TAKER_PRIVATE_KEY"),
        order_path=_env(environ, "ORDER_PATH"),
        quote_source=quote_source,
        expiration_minutes=expiration_minutes,
        http_timeout=http_timeout,
    )
