import asyncio

import pytest

from fanclub_market.errors import LedgerReadError, LedgerWriteError
from fanclub_market.identity.provider import StaticIdentityProvider
from fanclub_market.ledger.gateway import LedgerGateway
from fanclub_market.ledger.model import FanClub, FanType, TransactionResult
from fanclub_market.market.sync import MarketSyncEngine
from fanclub_market.market.trade import TradeController

ALICE = "0x00000000000000000000000000000000000A11CE"
TOKEN = "0x000000000000000000000000000000000000700C"


def make_club(index: int, share_price: int, name: str = "", fan_type: FanType = FanType.CITY, total_shares: int = 0) -> FanClub:
    return FanClub(
        index=index,
        name=name or f"club{index}",
        description="d",
        fan_type=fan_type,
        token_address=TOKEN,
        image=f"img{index}",
        total_shares=total_shares,
        share_price=share_price,
        creator=ALICE,
    )


class FakeLedgerGateway(LedgerGateway):
    """In-memory ledger: a list of clubs plus a call log."""

    def __init__(self, clubs=None):
        self.clubs = list(clubs or [])
        self.calls = []
        self.fail_read_index = None
        self.fail_count = False
        self.write_error = None
        self.write_status = "confirmed"
        self.on_write = None
        self._tx = 0

    async def read_fan_club_count(self) -> int:
        self.calls.append(("count",))
        if self.fail_count:
            raise LedgerReadError("count unavailable")
        return len(self.clubs)

    async def read_fan_club(self, index: int) -> FanClub:
        self.calls.append(("club", index))
        if index == self.fail_read_index:
            raise LedgerReadError(f"club {index} unavailable")
        if not 0 <= index < len(self.clubs):
            raise LedgerReadError(f"club {index} not found")
        return self.clubs[index]

    async def _write(self, call) -> TransactionResult:
        self.calls.append(call)
        if self.write_error is not None:
            raise self.write_error
        if self.on_write is not None:
            self.on_write(call)
        self._tx += 1
        return TransactionResult(tx_hash=f"0x{self._tx:064x}", status=self.write_status, block_number=self._tx)

    async def write_create_fan_club(self, name, description, fan_type_code, image, sender):
        return await self._write(("create", name, description, fan_type_code, image, sender))

    async def write_buy_shares(self, index, quantity, sender, attached_value):
        return await self._write(("buy", index, quantity, sender, attached_value))

    async def write_sell_shares(self, index, quantity, sender):
        return await self._write(("sell", index, quantity, sender))

    def writes(self):
        return [c for c in self.calls if c[0] in ("create", "buy", "sell")]

    def count_reads(self):
        return len([c for c in self.calls if c[0] == "count"])


@pytest.fixture
def gateway():
    return FakeLedgerGateway([make_club(0, 100), make_club(1, 250)])


@pytest.fixture
def identity():
    ident = StaticIdentityProvider(ALICE)
    asyncio.run(ident.request_connection())
    return ident


@pytest.fixture
def engine(gateway, identity):
    return MarketSyncEngine(gateway, identity)


@pytest.fixture
def controller(engine):
    return TradeController(engine)


def rejected(message: str = "user denied transaction signature") -> LedgerWriteError:
    return LedgerWriteError(message)
