"""
Foreground runner: watches one pool's Swap events, reports each block once
it is CONFIRMATION_DEPTH blocks deep and exits non-zero on the first
reorganization, decode or transport failure.

Usage:
    swapwatch --node-url https://mainnet.infura.io/v3/<key>
    swapwatch --config config.json --retention-blocks 64
"""

import argparse
import sys
import threading

from swapwatch.internal.blockchain.client import ChainClient
from swapwatch.internal.blockchain.types import CONFIRMATION_DEPTH
from swapwatch.internal.logger import init_logging, info, error, red_text
from swapwatch.internal.storage.memory import ObservationStore
from swapwatch.internal.utils.config import ConfigError, load_config
from swapwatch.internal.watcher.detector import ReorganizationError
from swapwatch.internal.watcher.service import SwapWatcher


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swapwatch",
        description=f"Report pool swaps at confirmation depth {CONFIRMATION_DEPTH} and fail on reorganizations.",
    )
    parser.add_argument("--config", help="JSON config file (defaults to $CONFIG_PATH)")
    parser.add_argument("--node-url", dest="eth_node_url", help="HTTP(S) JSON-RPC endpoint")
    parser.add_argument("--contract", dest="contract_address", help="Pool contract address")
    parser.add_argument("--abi", dest="abi_path", help="ABI JSON containing the watched event")
    parser.add_argument("--poll-interval", type=float, help="Seconds between head polls")
    parser.add_argument("--retention-blocks", type=int,
                        help="Drop observations this many blocks past confirmation (0 keeps all)")
    parser.add_argument("--reorg-check-workers", type=int, help="Parallel re-fetches per reorganization scan")
    parser.add_argument("--start-block", type=int, help="First block to process (defaults to the current head)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARN, ERROR or NONE")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    init_logging(args.log_level)

    try:
        config = load_config(
            args.config,
            eth_node_url=args.eth_node_url,
            contract_address=args.contract_address,
            abi_path=args.abi_path,
            poll_interval=args.poll_interval,
            retention_blocks=args.retention_blocks,
            reorg_check_workers=args.reorg_check_workers,
        )
    except ConfigError as e:
        error(f"Configuration error: {e}")
        return 1

    stop_event = threading.Event()
    try:
        client = ChainClient(
            eth_node_url=config.eth_node_url,
            abi_path=config.abi_path,
            contract_address=config.contract_address,
            event_name=config.event_name,
            request_timeout=config.request_timeout,
        )
        watcher = SwapWatcher(
            client=client,
            store=ObservationStore(),
            token0=config.token0,
            token1=config.token1,
            retention_blocks=config.retention_blocks,
            reorg_check_workers=config.reorg_check_workers,
            trades_kept=config.trades_kept,
        )
        watcher.run_forever(poll_interval=config.poll_interval, stop_event=stop_event, start_block=args.start_block)
    except KeyboardInterrupt:
        stop_event.set()
        info("Interrupted, exiting")
        return 0
    except ReorganizationError as e:
        error(red_text(str(e)))
        return 1
    except Exception as e:
        error(f"Swap watcher aborted: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
