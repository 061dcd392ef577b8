"""
Lightweight in-memory save store for local development and tests.

Implements the SaveStore interface used by the store controller (cart id +
currency) and the login client (remembered login data) without touching
disk.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional

from src.integrations.contracts.interfaces import SaveStore


class InMemorySaveStore(SaveStore):
    def __init__(self) -> None:
        # Simple in-memory store: slot -> document
        self._slots: Dict[str, Dict[str, Any]] = {}

    def load(self, slot: str) -> Optional[Dict[str, Any]]:
        data = self._slots.get(slot)
        return copy.deepcopy(data) if data is not None else None

    def save(self, slot: str, data: Dict[str, Any]) -> None:
        self._slots[slot] = copy.deepcopy(data)

    def delete(self, slot: str) -> None:
        self._slots.pop(slot, None)
