"""Market package.

Public API:
- ShareMarketView: immutable, index-ordered snapshot of fan clubs.
- MarketSyncEngine: refresh/submit against the ledger gateway.
- TradeController and PendingInputs: user-facing trading use-cases.
"""

from .view import ShareMarketView  # re-export
from .sync import MarketSyncEngine  # re-export
from .pending import PendingInputs  # re-export
from .trade import TradeController  # re-export
