"""Ledger package.

Public API:
- LedgerGateway / Web3LedgerGateway: typed read/write access to FanClubFactory.
- FanClub, FanType and the CreateClub/BuyShares/SellShares intents.
"""

from .gateway import LedgerGateway, Web3LedgerGateway  # re-export
from .model import (  # re-export
    BuyShares,
    CreateClub,
    FanClub,
    FanType,
    SellShares,
    SubmitReceipt,
    TransactionResult,
)
