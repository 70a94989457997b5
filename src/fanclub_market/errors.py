"""Error taxonomy for the fan-club share market client.

Layers:
- identity: ConnectionDeclined, ProviderUnavailable, NotConnected
- gateway: LedgerReadError, LedgerWriteError
- validation: UnknownClub, InvalidQuantity, InvalidCreateInput

None of these are fatal; callers report them and keep the client running.
"""
from __future__ import annotations

from typing import Optional


class FanClubMarketError(Exception):
    """Base class for every error raised by this package."""


# ---- identity ----

class IdentityError(FanClubMarketError):
    pass


class ConnectionDeclined(IdentityError):
    """The user refused to expose an account to the client."""


class ProviderUnavailable(IdentityError):
    """No compatible signing agent is reachable."""


class NotConnected(IdentityError):
    """An account is required but none has been connected yet."""


# ---- gateway ----

class LedgerError(FanClubMarketError):
    pass


class LedgerReadError(LedgerError):
    pass


class LedgerWriteError(LedgerError):
    """A write was rejected, declined, reverted or never confirmed.

    `tx_hash` is set when the transaction reached the ledger but its outcome
    is unknown or negative; such a write must not be resubmitted blindly.
    """

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


# ---- validation ----

class MarketValidationError(FanClubMarketError, ValueError):
    pass


class UnknownClub(MarketValidationError, LookupError):
    def __init__(self, index: object):
        super().__init__(f"fan club {index!r} is not in the current view")
        self.index = index


class InvalidQuantity(MarketValidationError):
    pass


class InvalidCreateInput(MarketValidationError):
    pass
