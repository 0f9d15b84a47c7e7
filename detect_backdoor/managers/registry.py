from __future__ import annotations

from typing import Iterable

from .base import PackageManager


class ManagerRegistry:
    def __init__(self, managers: Iterable[PackageManager]):
        self._by_ecosystem = {m.ecosystem(): m for m in managers}

    def list(self) -> list[str]:
        return sorted(self._by_ecosystem.keys())

    def get(self, ecosystem: str) -> PackageManager | None:
        return self._by_ecosystem.get(ecosystem)
