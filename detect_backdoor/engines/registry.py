from __future__ import annotations

from typing import Iterable

from detect_backdoor.core.errors import UnknownEngine

from .base import RuleEngine


class EngineRegistry:
    def __init__(self, engines: Iterable[RuleEngine]):
        self._by_name = {e.name(): e for e in engines}

    def list(self) -> list[str]:
        return sorted(self._by_name.keys())

    def get(self, name: str) -> RuleEngine:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownEngine(name, self.list()) from None
