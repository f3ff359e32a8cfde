"""
Model fallback chain — the configured primary model followed by the
provider's fallback models, deduplicated, with a cursor.
"""
from __future__ import annotations

from typing import Iterable, Iterator, Optional


class ModelFallbackChain:

    def __init__(self, primary: Optional[str], fallbacks: Iterable[str] = ()):
        models: list[str] = []
        for model in (primary, *fallbacks):
            name = (model or "").strip()
            if name and name not in models:
                models.append(name)
        if not models:
            raise ValueError("Model fallback chain needs at least one model")
        self._models: tuple[str, ...] = tuple(models)
        self._cursor = 0

    @property
    def current(self) -> str:
        return self._models[self._cursor]

    def next(self) -> str:
        """Advance to the next model and return it. StopIteration past the end."""
        if self.is_last():
            raise StopIteration
        self._cursor += 1
        return self.current

    def is_last(self) -> bool:
        return self._cursor == len(self._models) - 1

    def all(self) -> tuple[str, ...]:
        return self._models

    def __iter__(self) -> Iterator[str]:
        while True:
            yield self.current
            if self.is_last():
                return
            self.next()

    def __len__(self) -> int:
        return len(self._models)

    def __repr__(self) -> str:
        return f"ModelFallbackChain({', '.join(self._models)}; at {self.current})"
