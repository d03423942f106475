# swapwatch/internal/blockchain/client.py

import json
from typing import List, Union

from web3 import Web3, __version__ as web3_lib_version
from web3.providers.rpc import HTTPProvider
from web3.middleware import ExtraDataToPOAMiddleware

from swapwatch.internal.blockchain.decoder import EventSchema
from swapwatch.internal.blockchain.types import BlockHeader, as_bytes32
from swapwatch.internal.logger import info, debug
from swapwatch.internal.utils.helpers import short_hash, to_hex


def load_abi(abi_path: str) -> list:
    """Accepts either a bare ABI list or a compiler artifact with an "abi" key."""
    with open(abi_path, "r") as f:
        data = json.load(f)
    abi = data.get("abi") if isinstance(data, dict) else data
    if not abi:
        raise ValueError(f"ABI not found in JSON: {abi_path}")
    return abi


class ChainClient:
    def __init__(self, eth_node_url: str, abi_path: str, contract_address: str,
                 event_name: str = "Swap", request_timeout: float = 30.0, web3: Web3 = None):
        if web3 is not None:
            self.web3 = web3
        else:
            if eth_node_url.startswith("ws://") or eth_node_url.startswith("wss://"):
                raise ValueError(
                    "Web3.py v7 does not support synchronous WebSockets. "
                    "Please use an HTTP/HTTPS endpoint (e.g., http://...)"
                )
            if not (eth_node_url.startswith("http://") or eth_node_url.startswith("https://")):
                raise ValueError("eth_node_url must start with http:// or https://")

            self.web3 = Web3(HTTPProvider(eth_node_url, request_kwargs={"timeout": request_timeout}))
            self.web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

            if not self.web3.is_connected():
                raise ConnectionError(f"Cannot connect to Ethereum node at {eth_node_url}")

        self.abi = load_abi(abi_path)
        self.contract_address = Web3.to_checksum_address(contract_address)

        self.event_name = event_name
        self.event_abi = self.get_event_abi(event_name)
        self.schema = EventSchema.from_abi(self.event_abi)
        self.event_topic = self.schema.topic

        info("Web3 Client Initialized:")
        info(f"Web3 Lib Version : {web3_lib_version}")
        info(f"Contract Address : {self.contract_address}")
        info(f"Watched Event    : {self.schema.signature}")
        info(f"Event Topic      : {to_hex(self.event_topic)}")
        info(f"Node URL         : {eth_node_url}")

    def get_event_abi(self, event_name: str) -> dict:
        """
        Returns the ABI dict for the event (used to build the decoding schema).
        """
        for entry in self.abi:
            if entry.get("type") == "event" and entry.get("name") == event_name:
                return entry
        raise ValueError(f"Event '{event_name}' does not exist in the contract ABI.")

    @property
    def block_number(self) -> int:
        return self.web3.eth.block_number

    def get_block_header(self, block_identifier: Union[int, str] = "latest") -> BlockHeader:
        block = self.web3.eth.get_block(block_identifier)
        if block.get("number") is None or block.get("hash") is None:
            raise ValueError(f"Block {block_identifier} has no number/hash (pending block?)")
        return BlockHeader(number=int(block["number"]), hash=bytes(block["hash"]))

    def get_swap_logs(self, block_hash: bytes) -> List:
        """
        All logs in the block identified by `block_hash` emitted by the watched
        contract with topic0 == the watched event signature.
        """
        filter_params = {
            "blockHash": to_hex(as_bytes32(block_hash)),
            "address": self.contract_address,
            "topics": [to_hex(self.event_topic)],
        }
        logs = list(self.web3.eth.get_logs(filter_params))
        debug(f"get_logs(blockHash={short_hash(block_hash)}) -> {len(logs)} log(s)")
        return logs
