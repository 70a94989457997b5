"""
MarketSyncEngine: the only writer of the ShareMarketView.

What it does:
- `refresh()` re-reads the fan-club count and every club from the ledger and
  publishes a new view in one assignment. Refreshes run one at a time.
- `submit(intent)` validates an intent locally, forwards it to the gateway
  with the active account as sender, and refreshes only once the ledger has
  accepted the write.

Failure handling:
- A failed read leaves the previous view in place and raises LedgerReadError.
- A failed write raises LedgerWriteError; nothing is refreshed or retried.
- A refresh failing after an accepted write is reported on the receipt
  (`synced=False`) instead of as a failed submission, so the caller does not
  resubmit a write that already happened.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional

from ..errors import (
    InvalidCreateInput,
    InvalidQuantity,
    LedgerReadError,
    LedgerWriteError,
    MarketValidationError,
    UnknownClub,
)
from ..identity.provider import IdentityProvider
from ..ledger.gateway import LedgerGateway
from ..ledger.model import (
    BuyShares,
    CreateClub,
    FanClub,
    FanType,
    Intent,
    SellShares,
    SubmitReceipt,
    TransactionResult,
)
from ..logs.trade_log import log_market_event
from ..metrics.market import (
    get_fan_clubs_gauge,
    get_refresh_latency_seconds,
    get_refresh_total,
    get_validation_rejected_total,
)
from .view import ShareMarketView

logger = logging.getLogger(__name__)

RefreshListener = Callable[[ShareMarketView], None]

MAX_UINT256 = 2 ** 256 - 1


def validate_quantity(quantity: object) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity(f"share quantity must be an integer, got {quantity!r}")
    if quantity <= 0:
        raise InvalidQuantity(f"share quantity must be positive, got {quantity}")
    if quantity > MAX_UINT256:
        raise InvalidQuantity(f"share quantity does not fit in uint256: {quantity}")
    return quantity


def validate_index(index: object) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= MAX_UINT256:
        raise UnknownClub(index)
    return index


def validate_create(intent: CreateClub) -> None:
    for field in ("name", "description", "image"):
        value = getattr(intent, field)
        if not isinstance(value, str) or not value.strip():
            raise InvalidCreateInput(f"{field} must not be empty")
    if not isinstance(intent.fan_type, FanType):
        raise InvalidCreateInput(f"unknown fan type: {intent.fan_type!r}")


class MarketSyncEngine:
    def __init__(
        self,
        gateway: LedgerGateway,
        identity: IdentityProvider,
        concurrent_reads: bool = False,
    ):
        self.gateway = gateway
        self.identity = identity
        self.concurrent_reads = bool(concurrent_reads)
        self._view = ShareMarketView.empty()
        self._refresh_lock = asyncio.Lock()
        self._listeners: List[RefreshListener] = []
        # Metrics
        self.refresh_total = get_refresh_total()
        self.refresh_latency = get_refresh_latency_seconds()
        self.fan_clubs_gauge = get_fan_clubs_gauge()
        self.validation_rejected = get_validation_rejected_total()

    @property
    def view(self) -> ShareMarketView:
        return self._view

    def add_listener(self, listener: RefreshListener) -> None:
        """Call `listener(view)` after every successful refresh."""
        self._listeners.append(listener)

    async def _read_clubs(self, count: int) -> List[FanClub]:
        if self.concurrent_reads:
            return list(await asyncio.gather(*(self.gateway.read_fan_club(i) for i in range(count))))
        clubs: List[FanClub] = []
        for i in range(count):
            clubs.append(await self.gateway.read_fan_club(i))
        return clubs

    async def refresh(self) -> ShareMarketView:
        async with self._refresh_lock:
            started = time.monotonic()
            try:
                count = await self.gateway.read_fan_club_count()
                if count < 0:
                    raise LedgerReadError(f"ledger reported a negative fan club count: {count}")
                clubs = await self._read_clubs(count)
                for pos, club in enumerate(clubs):
                    if club.index != pos:
                        raise LedgerReadError(f"read for index {pos} returned index {club.index}")
            except LedgerReadError as e:
                self.refresh_total.labels("false").inc()
                log_market_event(
                    "refresh_failed", "sync", severity="WARNING",
                    error=str(e), kept_clubs=len(self._view),
                )
                raise
            view = ShareMarketView(clubs)
            self._view = view
            self.refresh_total.labels("true").inc()
            self.refresh_latency.observe(time.monotonic() - started)
            self.fan_clubs_gauge.set(len(view))
            log_market_event("refresh_completed", "sync", clubs=len(view))
        for listener in self._listeners:
            listener(view)
        return view

    async def submit(self, intent: Intent) -> SubmitReceipt:
        try:
            attached_value = self._validate(intent)
        except MarketValidationError as e:
            self.validation_rejected.labels(type(e).__name__).inc()
            log_market_event("intent_rejected", "sync", severity="WARNING",
                             intent=type(intent).__name__, reason=str(e))
            raise
        sender = self.identity.current_account()

        try:
            result = await self._write(intent, sender, attached_value)
            if not result.accepted:
                raise LedgerWriteError(
                    f"{type(intent).__name__} was not accepted ({result.status})", tx_hash=result.tx_hash
                )
        except LedgerWriteError as e:
            log_market_event("write_failed", "sync", severity="ERROR",
                             intent=type(intent).__name__, error=str(e), tx_hash=e.tx_hash)
            raise
        log_market_event("write_confirmed", "sync", intent=type(intent).__name__,
                         tx_hash=result.tx_hash, value=attached_value)

        synced = True
        try:
            await self.refresh()
        except LedgerReadError as e:
            synced = False
            logger.warning(f"Write {result.tx_hash} confirmed but resync failed: {e}")
        return SubmitReceipt(intent=intent, transaction=result, attached_value=attached_value, synced=synced)

    def _validate(self, intent: Intent) -> int:
        """Check an intent before any network call; return the value to attach."""
        if isinstance(intent, CreateClub):
            validate_create(intent)
            return 0
        if isinstance(intent, BuyShares):
            quantity = validate_quantity(intent.quantity)
            # Price comes from the last sync, never from the caller; the ledger
            # rejects the payment if it moved since.
            club = self._view.get(intent.index)
            return club.share_price * quantity
        if isinstance(intent, SellShares):
            validate_index(intent.index)
            validate_quantity(intent.quantity)
            return 0
        raise TypeError(f"unsupported intent: {intent!r}")

    async def _write(self, intent: Intent, sender: str, attached_value: int) -> TransactionResult:
        if isinstance(intent, CreateClub):
            return await self.gateway.write_create_fan_club(
                intent.name, intent.description, int(intent.fan_type), intent.image, sender
            )
        if isinstance(intent, BuyShares):
            return await self.gateway.write_buy_shares(intent.index, intent.quantity, sender, attached_value)
        return await self.gateway.write_sell_shares(intent.index, intent.quantity, sender)
