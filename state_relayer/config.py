"""Runtime configuration."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from state_relayer.constants import (
    DEFAULT_DECIMALS,
    DEFAULT_DENOMINATION,
    DEFAULT_OCEAN_NETWORK,
    DEFAULT_OCEAN_URL,
    DEFAULT_POOL_PAIR_PAGE_SIZE,
    DEFAULT_TIMEOUT,
)

ENV_RPC_URL = "STATE_RELAYER_RPC_URL"
ENV_CONTRACT = "STATE_RELAYER_CONTRACT"
ENV_PRIVATE_KEY = "STATE_RELAYER_PRIVATE_KEY"
ENV_OCEAN_URL = "OCEAN_URL"
ENV_OCEAN_NETWORK = "OCEAN_NETWORK"


@dataclass(frozen=True)
class RelayerConfig:
    """Settings for one relay cycle."""

    denomination: str = DEFAULT_DENOMINATION
    decimals: int = DEFAULT_DECIMALS
    pool_pair_page_size: int = DEFAULT_POOL_PAIR_PAGE_SIZE
    ocean_url: str = DEFAULT_OCEAN_URL
    network: str = DEFAULT_OCEAN_NETWORK
    rpc_url: str | None = None
    contract_address: str | None = None
    # Never printed; see __repr__.
    private_key: str | None = None
    timeout_s: int = DEFAULT_TIMEOUT
    batched: bool = False

    def __repr__(self) -> str:
        key = "***" if self.private_key else None
        return (
            f"RelayerConfig(denomination={self.denomination!r}, decimals={self.decimals}, "
            f"pool_pair_page_size={self.pool_pair_page_size}, ocean_url={self.ocean_url!r}, "
            f"network={self.network!r}, rpc_url={self.rpc_url!r}, contract_address={self.contract_address!r}, "
            f"private_key={key!r}, timeout_s={self.timeout_s}, batched={self.batched})"
        )

    @classmethod
    def from_args(cls, args, environ: Mapping[str, str] | None = None) -> "RelayerConfig":
        """Build from parsed CLI arguments, falling back to environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            denomination=args.denomination,
            decimals=args.decimals,
            pool_pair_page_size=args.page_size,
            ocean_url=args.ocean_url or env.get(ENV_OCEAN_URL) or DEFAULT_OCEAN_URL,
            network=args.network or env.get(ENV_OCEAN_NETWORK) or DEFAULT_OCEAN_NETWORK,
            rpc_url=args.rpc_url or env.get(ENV_RPC_URL),
            contract_address=args.contract or env.get(ENV_CONTRACT),
            private_key=env.get(ENV_PRIVATE_KEY),
            timeout_s=args.timeout,
            batched=args.batch,
        )

    def validate(self, *, dry_run: bool = False) -> list[str]:
        """Return configuration problems; an empty list means the config is usable."""
        problems: list[str] = []
        if self.decimals < 0:
            problems.append("decimals must be >= 0")
        if self.pool_pair_page_size <= 0:
            problems.append("page size must be > 0")
        if not self.denomination:
            problems.append("denomination must not be empty")
        if dry_run:
            return problems
        if not self.rpc_url:
            problems.append(f"RPC URL is required. Provide --rpc-url or set {ENV_RPC_URL}.")
        if not self.contract_address:
            problems.append(f"Contract address is required. Provide --contract or set {ENV_CONTRACT}.")
        if not self.private_key:
            problems.append(f"Signer key is required. Set {ENV_PRIVATE_KEY}.")
        return problems
