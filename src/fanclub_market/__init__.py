"""fanclub_market package.

Public API:
- MarketSyncEngine: ledger reads/writes and view reconciliation.
- ShareMarketView: immutable snapshot of all fan clubs.
- TradeController: create/buy/sell use-cases with pending input handling.
"""

from .market.sync import MarketSyncEngine  # re-export
from .market.view import ShareMarketView  # re-export
from .market.trade import TradeController  # re-export
