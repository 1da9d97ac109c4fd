"""CLI and main logic."""

import argparse
import logging
import sys

from state_relayer.aggregator import aggregate
from state_relayer.config import RelayerConfig
from state_relayer.console import print_outcome, print_relayer_state, print_snapshot
from state_relayer.constants import DEFAULT_DECIMALS, DEFAULT_DENOMINATION, DEFAULT_POOL_PAIR_PAGE_SIZE, DEFAULT_TIMEOUT
from state_relayer.ocean import OceanClient
from state_relayer.orchestrator import SyncOrchestrator

# Dry runs submit as this account to a fresh in-process relayer.
DRY_RUN_BOT = "0x00000000000000000000000000000000000B0700"


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(
        description="Relay DEX, vault and master-node statistics from Ocean to the StateRelayer contract."
    )
    p.add_argument("--rpc-url", default=None, help="EVM RPC URL. Falls back to STATE_RELAYER_RPC_URL.")
    p.add_argument("--contract", default=None, help="StateRelayer address. Falls back to STATE_RELAYER_CONTRACT.")
    p.add_argument("--ocean-url", default=None, help="Ocean API base URL. Falls back to OCEAN_URL.")
    p.add_argument("--network", default=None, help="Ocean network (mainnet, testnet). Falls back to OCEAN_NETWORK.")
    p.add_argument("--denomination", default=DEFAULT_DENOMINATION, help="Reference denomination symbol.")
    p.add_argument("--decimals", type=int, default=DEFAULT_DECIMALS, help="Fixed-point precision.")
    p.add_argument("--page-size", type=int, default=DEFAULT_POOL_PAIR_PAGE_SIZE, help="Pool pairs to fetch.")
    p.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT, help="HTTP / receipt timeout in seconds.")
    p.add_argument(
        "--batch",
        action="store_true",
        help="Submit all updates in one atomic batchCallByBot transaction instead of three transactions.",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Relay to an in-process StateRelayer instead of the network contract.",
    )
    p.add_argument("--quiet", action="store_true", help="Do not print the snapshot summary.")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv).")
    return p.parse_args(argv)


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def build_client(config: RelayerConfig):
    """Connect to the network contract. Returns None (after printing why) on failure."""
    from web3 import Web3  # pylint: disable=import-outside-toplevel

    from state_relayer.clients import Web3RelayerClient  # pylint: disable=import-outside-toplevel

    w3 = Web3(Web3.HTTPProvider(config.rpc_url, request_kwargs={"timeout": config.timeout_s}))
    if not w3.is_connected():
        print(f"Error: failed to connect to RPC at {config.rpc_url}", file=sys.stderr)
        return None
    try:
        client = Web3RelayerClient(w3, config.contract_address, config.private_key, timeout_s=config.timeout_s)
    except Exception as ex:  # pylint: disable=broad-exception-caught
        print(f"Error: invalid contract address or signer key: {ex}", file=sys.stderr)
        return None
    print(f"ℹ️ Relaying as {client.sender} to {config.contract_address}", file=sys.stderr)
    return client


def main(argv: list[str]) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    config = RelayerConfig.from_args(args)
    problems = config.validate(dry_run=args.dry_run)
    if problems:
        for problem in problems:
            print(f"Error: {problem}", file=sys.stderr)
        return 2

    relayer = None
    if args.dry_run:
        from state_relayer.clients import InProcessRelayerClient  # pylint: disable=import-outside-toplevel
        from state_relayer.protocol import StateRelayer  # pylint: disable=import-outside-toplevel

        relayer = StateRelayer(admin=DRY_RUN_BOT, bot=DRY_RUN_BOT)
        client = InProcessRelayerClient(relayer, DRY_RUN_BOT)
        print("ℹ️ Dry run: relaying to an in-process StateRelayer", file=sys.stderr)
    else:
        client = build_client(config)
        if client is None:
            return 2

    source = OceanClient(config.ocean_url, config.network, timeout_s=config.timeout_s)
    snapshot = aggregate(source, config, progress=True)
    if snapshot is None:
        print("Error: aggregation failed; nothing relayed (see log).", file=sys.stderr)
        return 1

    if not args.quiet:
        print_snapshot(snapshot, max_pairs=20)

    outcome = SyncOrchestrator(client, batched=config.batched, progress=True).run(snapshot)
    print_outcome(outcome)
    if relayer is not None:
        print_relayer_state(relayer, decimals=snapshot.decimals)
    return 0 if outcome.ok else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
