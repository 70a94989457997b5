"""Quantities typed by the user but not yet submitted.

Kept per fan-club index, separately for buy and sell. Values are stored as
entered (form fields deliver text); parsing happens on submission.
"""
from __future__ import annotations

from typing import Dict, Literal, Optional, Union

PendingKind = Literal["buy", "sell"]
PendingValue = Union[int, str]


class PendingInputs:
    def __init__(self):
        self._entries: Dict[PendingKind, Dict[int, PendingValue]] = {"buy": {}, "sell": {}}

    def _bucket(self, kind: PendingKind) -> Dict[int, PendingValue]:
        try:
            return self._entries[kind]
        except KeyError:
            raise ValueError(f"pending kind must be 'buy' or 'sell', got {kind!r}") from None

    def get(self, kind: PendingKind, index: int) -> Optional[PendingValue]:
        return self._bucket(kind).get(index)

    def set(self, kind: PendingKind, index: int, value: PendingValue) -> None:
        if value == "" or value is None:
            self._bucket(kind).pop(index, None)
            return
        self._bucket(kind)[index] = value

    def clear(self, kind: PendingKind, index: int) -> None:
        self._bucket(kind).pop(index, None)

    def reset(self) -> None:
        """Empty every entry; called whenever the club list is reloaded."""
        for entries in self._entries.values():
            entries.clear()

    def snapshot(self) -> Dict[PendingKind, Dict[int, PendingValue]]:
        return {kind: dict(entries) for kind, entries in self._entries.items()}
