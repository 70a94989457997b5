from __future__ import annotations

import time
from typing import Iterable, Iterator, List, Optional, Tuple

from ..errors import UnknownClub
from ..ledger.model import FanClub


class ShareMarketView:
    """Immutable snapshot of every fan club the ledger reported in one sync.

    Entries are in ledger index order and form the contiguous prefix
    [0, count). A new snapshot replaces the old one wholesale; nothing edits
    a snapshot in place.
    """

    __slots__ = ("_clubs", "synced_at")

    def __init__(self, clubs: Iterable[FanClub], synced_at: Optional[float] = None):
        ordered: Tuple[FanClub, ...] = tuple(clubs)
        for pos, club in enumerate(ordered):
            if club.index != pos:
                raise ValueError(f"fan club at position {pos} has index {club.index}")
        self._clubs = ordered
        self.synced_at = synced_at if synced_at is not None else time.time()

    @classmethod
    def empty(cls) -> "ShareMarketView":
        return cls((), synced_at=0.0)

    def list(self) -> List[FanClub]:
        return [*self._clubs]

    def get(self, index: int) -> FanClub:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._clubs):
            raise UnknownClub(index)
        return self._clubs[index]

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(self._clubs)

    def __len__(self) -> int:
        return len(self._clubs)

    def __iter__(self) -> Iterator[FanClub]:
        return iter(self._clubs)

    def __repr__(self) -> str:
        return f"ShareMarketView(clubs={len(self._clubs)}, synced_at={self.synced_at})"
