from __future__ import annotations

import logging
from typing import Optional, Union

from ..errors import InvalidQuantity, NotConnected
from ..ledger.model import BuyShares, CreateClub, FanType, SellShares, SubmitReceipt
from .pending import PendingInputs, PendingKind, PendingValue
from .sync import MarketSyncEngine

logger = logging.getLogger(__name__)


def parse_quantity(value: Optional[PendingValue]) -> int:
    """Turn a typed quantity into an int; positivity is checked on submit."""
    if value is None:
        raise InvalidQuantity("no share quantity entered")
    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            raise InvalidQuantity(f"share quantity must be a whole number, got {value!r}")
        return int(text)
    return value


def success_message(receipt: SubmitReceipt) -> str:
    intent = receipt.intent
    if isinstance(intent, CreateClub):
        return "Fan club created successfully!"
    if isinstance(intent, BuyShares):
        return f"Successfully bought {intent.quantity} shares!"
    return f"Successfully sold {intent.quantity} shares!"


class TradeController:
    """Create/buy/sell use-cases on top of MarketSyncEngine.

    Owns the pending inputs. A failed trade keeps its entry so it can be
    retried without re-typing; a successful trade or any successful reload of
    the club list empties them.
    """

    def __init__(self, engine: MarketSyncEngine, pending: Optional[PendingInputs] = None):
        self.engine = engine
        self.pending = pending if pending is not None else PendingInputs()
        engine.add_listener(lambda view: self.pending.reset())

    async def connect(self) -> str:
        """Connect an account and load the clubs; a new account starts with no pending input."""
        try:
            previous: Optional[str] = self.engine.identity.current_account()
        except NotConnected:
            previous = None
        account = await self.engine.identity.request_connection()
        if account != previous:
            self.pending.reset()
        await self.engine.refresh()
        return account

    def _quantity(self, kind: PendingKind, index: int, quantity: Optional[PendingValue]) -> int:
        if quantity is None:
            quantity = self.pending.get(kind, index)
        return parse_quantity(quantity)

    async def create_club(
        self, name: str, description: str, fan_type: Union[FanType, str, int], image: str
    ) -> SubmitReceipt:
        intent = CreateClub(name=name, description=description, fan_type=FanType.parse(fan_type), image=image)
        return await self.engine.submit(intent)

    async def buy_shares(self, index: int, quantity: Optional[PendingValue] = None) -> SubmitReceipt:
        # Stale UI may reference a club the last refresh no longer holds
        self.engine.view.get(index)
        qty = self._quantity("buy", index, quantity)
        receipt = await self.engine.submit(BuyShares(index=index, quantity=qty))
        self.pending.clear("buy", index)
        return receipt

    async def sell_shares(self, index: int, quantity: Optional[PendingValue] = None) -> SubmitReceipt:
        qty = self._quantity("sell", index, quantity)
        receipt = await self.engine.submit(SellShares(index=index, quantity=qty))
        self.pending.clear("sell", index)
        return receipt
