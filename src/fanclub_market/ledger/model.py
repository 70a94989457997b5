from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal, Optional, Union

from ..errors import InvalidCreateInput

TxStatus = Literal["confirmed", "reverted"]

DEFAULT_IPFS_GATEWAY = "https://ipfs.io/ipfs/"


class FanType(IntEnum):
    """Fan-club category; the value is the code stored by the contract."""

    CITY = 0
    PSG = 1
    ARS = 2

    @classmethod
    def parse(cls, value: Union["FanType", str, int]) -> "FanType":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls[key]
            raise InvalidCreateInput(f"unknown fan type: {value!r}")
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                pass
        raise InvalidCreateInput(f"unknown fan type: {value!r}")


@dataclass(frozen=True)
class FanClub:
    index: int
    name: str
    description: str
    fan_type: FanType
    token_address: str
    image: str
    total_shares: int
    share_price: int
    creator: str

    def image_url(self, gateway: str = DEFAULT_IPFS_GATEWAY) -> str:
        return gateway.rstrip("/") + "/" + self.image


# ---- intents ----

@dataclass(frozen=True)
class CreateClub:
    name: str
    description: str
    fan_type: FanType
    image: str


@dataclass(frozen=True)
class BuyShares:
    index: int
    quantity: int


@dataclass(frozen=True)
class SellShares:
    index: int
    quantity: int


Intent = Union[CreateClub, BuyShares, SellShares]


@dataclass(frozen=True)
class TransactionResult:
    tx_hash: str
    status: TxStatus
    block_number: Optional[int] = None

    @property
    def accepted(self) -> bool:
        return self.status == "confirmed"


@dataclass(frozen=True)
class SubmitReceipt:
    """Outcome of a submitted intent.

    Attributes:
        intent: The intent that was forwarded to the ledger
        transaction: Receipt-level result reported by the gateway
        attached_value: Native value sent with the write (0 unless buying)
        synced: False when the write succeeded but the follow-up refresh failed
    """

    intent: Intent
    transaction: TransactionResult
    attached_value: int = 0
    synced: bool = True
