"""
Ledger gateway for the FanClubFactory contract.

What it does:
- Defines the `LedgerGateway` interface the sync engine depends on.
- Implements it over web3.py's `AsyncWeb3`: `call()` for reads, `transact()`
  plus a receipt wait for writes.
- Translates web3/RPC/transport failures into LedgerReadError/LedgerWriteError.

Where it is used:
- Built by `fanclub_market.main` from `Settings` and handed to
  `MarketSyncEngine`. Tests substitute an in-memory gateway.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TimeExhausted, Web3Exception

from ..config.loader import Settings
from ..errors import LedgerReadError, LedgerWriteError
from ..metrics.market import get_ledger_reads_total, get_ledger_writes_total
from .abi import load_abi
from .model import FanClub, FanType, TransactionResult

logger = logging.getLogger(__name__)

# Errors raised by web3.py, JSON-RPC error responses and the HTTP transport.
_CALL_ERRORS = (Web3Exception, ValueError, OSError)


class LedgerGateway:
    """Typed read/write access to the ledger. No logic beyond marshalling."""

    async def read_fan_club_count(self) -> int:
        raise NotImplementedError

    async def read_fan_club(self, index: int) -> FanClub:
        raise NotImplementedError

    async def write_create_fan_club(
        self, name: str, description: str, fan_type_code: int, image: str, sender: str
    ) -> TransactionResult:
        raise NotImplementedError

    async def write_buy_shares(self, index: int, quantity: int, sender: str, attached_value: int) -> TransactionResult:
        raise NotImplementedError

    async def write_sell_shares(self, index: int, quantity: int, sender: str) -> TransactionResult:
        raise NotImplementedError


def decode_fan_club(index: int, raw: Sequence[Any]) -> FanClub:
    """Turn the `getFanClub` return tuple into a FanClub.

    Field order: name, description, fanType, tokenAddress, image,
    totalShares, sharePrice, creator.
    """
    if len(raw) != 8:
        raise LedgerReadError(f"getFanClub({index}) returned {len(raw)} fields, expected 8")
    try:
        fan_type = FanType(int(raw[2]))
    except ValueError as e:
        raise LedgerReadError(f"getFanClub({index}) returned unknown fanType {raw[2]!r}") from e
    return FanClub(
        index=index,
        name=str(raw[0]),
        description=str(raw[1]),
        fan_type=fan_type,
        token_address=str(raw[3]),
        image=str(raw[4]),
        total_shares=int(raw[5]),
        share_price=int(raw[6]),
        creator=str(raw[7]),
    )


class Web3LedgerGateway(LedgerGateway):
    def __init__(
        self,
        w3: AsyncWeb3,
        contract_address: str,
        abi: Optional[List[Dict[str, Any]]] = None,
        receipt_timeout_s: float = 120.0,
        poll_latency_s: float = 0.5,
    ):
        self.w3 = w3
        self.contract = w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract_address),
            abi=abi if abi is not None else load_abi(),
        )
        self.receipt_timeout_s = float(receipt_timeout_s)
        self.poll_latency_s = float(poll_latency_s)
        self.reads = get_ledger_reads_total()
        self.writes = get_ledger_writes_total()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Web3LedgerGateway":
        w3 = AsyncWeb3(AsyncHTTPProvider(settings.rpc_url))
        return cls(
            w3,
            settings.ledger.contract_address,
            abi=load_abi(settings.ledger.abi_path),
            receipt_timeout_s=settings.ledger.receipt_timeout_s,
            poll_latency_s=settings.ledger.poll_latency_s,
        )

    async def _call(self, op: str, build: Callable[[], Any]) -> Any:
        # web3 checks arguments against the ABI when the call is built
        try:
            result = await build().call()
        except _CALL_ERRORS as e:
            self.reads.labels(op, "false").inc()
            raise LedgerReadError(f"{op} failed: {e}") from e
        self.reads.labels(op, "true").inc()
        return result

    async def read_fan_club_count(self) -> int:
        return int(await self._call("getFanClubCount", lambda: self.contract.functions.getFanClubCount()))

    async def read_fan_club(self, index: int) -> FanClub:
        raw = await self._call("getFanClub", lambda: self.contract.functions.getFanClub(index))
        return decode_fan_club(index, raw)

    async def _transact(self, op: str, build: Callable[[], Any], tx_params: Dict[str, Any]) -> TransactionResult:
        # The node (or the wallet behind it) signs; a declined signature surfaces here.
        try:
            raw_hash = await build().transact(tx_params)
        except _CALL_ERRORS as e:
            self.writes.labels(op, "false").inc()
            raise LedgerWriteError(f"{op} rejected: {e}") from e
        tx_hash = AsyncWeb3.to_hex(raw_hash)
        logger.info(f"{op} submitted tx={tx_hash}")
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                raw_hash, timeout=self.receipt_timeout_s, poll_latency=self.poll_latency_s
            )
        except TimeExhausted as e:
            self.writes.labels(op, "false").inc()
            raise LedgerWriteError(f"{op} submitted but not confirmed", tx_hash=tx_hash) from e
        except _CALL_ERRORS as e:
            self.writes.labels(op, "false").inc()
            raise LedgerWriteError(f"{op} receipt unavailable: {e}", tx_hash=tx_hash) from e
        status = "confirmed" if int(receipt["status"]) == 1 else "reverted"
        self.writes.labels(op, "true" if status == "confirmed" else "false").inc()
        return TransactionResult(tx_hash=tx_hash, status=status, block_number=receipt.get("blockNumber"))

    async def write_create_fan_club(
        self, name: str, description: str, fan_type_code: int, image: str, sender: str
    ) -> TransactionResult:
        fns = self.contract.functions
        return await self._transact(
            "createFanClub", lambda: fns.createFanClub(name, description, fan_type_code, image), {"from": sender}
        )

    async def write_buy_shares(self, index: int, quantity: int, sender: str, attached_value: int) -> TransactionResult:
        fns = self.contract.functions
        return await self._transact(
            "buyShares", lambda: fns.buyShares(index, quantity), {"from": sender, "value": attached_value}
        )

    async def write_sell_shares(self, index: int, quantity: int, sender: str) -> TransactionResult:
        fns = self.contract.functions
        return await self._transact("sellShares", lambda: fns.sellShares(index, quantity), {"from": sender})
