"""
Read-only chain client.

Contract reads are described with human-readable signatures such as
``"getCappedRelativeWeight(uint256)(uint256)"`` and executed either one at a
time or batched through Multicall. Batches are all-or-nothing: they are sent
with ``require_success=True``, so a single reverting read fails its whole
chunk and the error propagates to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Optional, Sequence, Tuple

from multicall import Call, Multicall
from web3 import Web3

from config import ChainConfig, Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContractRead:
    """One read in a batch, identified by ``key`` in the results."""

    key: Hashable
    address: str
    signature: str
    args: Tuple[Any, ...] = ()

    def to_call(self) -> Call:
        return Call(
            Web3.to_checksum_address(self.address),
            [self.signature, *self.args],
            [[self.key, None]],
        )


class ChainClient:
    """Executes read-only contract calls against one chain."""

    def __init__(
        self,
        chain: ChainConfig,
        timeout: Optional[int] = None,
        batch_size: Optional[int] = None,
    ):
        """
        Initialize client with Web3 connection.

        Args:
            chain: Chain id, name and RPC endpoint
            timeout: RPC request timeout in seconds
            batch_size: Maximum reads per multicall
        """
        self.chain = chain
        self.w3 = Web3(
            Web3.HTTPProvider(
                chain.rpc_url,
                request_kwargs={"timeout": timeout or Config.RPC_TIMEOUT},
            )
        )
        self.batch_size = batch_size or Config.MULTICALL_BATCH_SIZE
        logger.debug(f"Chain client initialized for {chain.name} ({chain.chain_id})")

    @property
    def chain_id(self) -> int:
        return self.chain.chain_id

    def get_latest_block(self) -> int:
        return self.w3.eth.block_number

    def read(self, address: str, signature: str, *args: Any) -> Any:
        """
        Execute a single contract read.

        Args:
            address: Contract address
            signature: Function signature with output types
            *args: Call arguments

        Returns:
            Decoded return value (a tuple when the function has several outputs)
        """
        call = Call(Web3.to_checksum_address(address), [signature, *args], _w3=self.w3)
        try:
            return call()
        except Exception as e:
            logger.error(f"{signature} failed on {address} (chain {self.chain_id}): {e}")
            raise

    def read_many(self, reads: Sequence[ContractRead]) -> Dict[Hashable, Any]:
        """
        Execute reads in multicall chunks.

        Args:
            reads: Reads to execute; keys must be unique

        Returns:
            Dictionary mapping each read's key to its decoded value

        Raises:
            Exception: If any chunk fails; no partial results are returned
        """
        keys = [read.key for read in reads]
        if len(set(keys)) != len(keys):
            raise ValueError("Duplicate keys in batched reads")

        results: Dict[Hashable, Any] = {}
        for start in range(0, len(reads), self.batch_size):
            results.update(self._aggregate(reads[start : start + self.batch_size]))
        return results

    def _aggregate(self, chunk: Sequence[ContractRead]) -> Dict[Hashable, Any]:
        multi = Multicall([read.to_call() for read in chunk], _w3=self.w3, require_success=True)
        try:
            results = multi()
        except Exception as e:
            logger.error(f"Multicall of {len(chunk)} reads failed on chain {self.chain_id}: {e}")
            raise
        return {read.key: results[read.key] for read in chunk}


def build_clients(chains: Dict[int, ChainConfig]) -> Dict[int, ChainClient]:
    """Create one client per configured chain."""
    return {chain_id: ChainClient(chain) for chain_id, chain in chains.items()}
