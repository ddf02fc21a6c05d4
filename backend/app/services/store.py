from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel

from app.schemas.timetable import (
    COLLECTION_MODELS,
    SINGLETON_MODELS,
    FullTimetableState,
)


class TimetableStore:
    """Holds every collection and configuration singleton of one timetable.

    Each write swaps a whole collection or singleton for a new value, so a
    reader never observes a half-applied change. Lookups by id go through
    per-collection indexes rebuilt on every replace.
    """

    def __init__(self, state: FullTimetableState | None = None) -> None:
        self._state = state if state is not None else FullTimetableState()
        self._indexes: dict[str, dict[str, BaseModel]] = {}
        for name in COLLECTION_MODELS:
            self._indexes[name] = self._build_index(name, getattr(self._state, name))

    @property
    def state(self) -> FullTimetableState:
        return self._state

    def collection(self, name: str) -> list[Any]:
        if name not in COLLECTION_MODELS:
            raise ValueError(f"Unknown collection: {name}")
        return list(getattr(self._state, name))

    def singleton(self, name: str) -> BaseModel:
        if name not in SINGLETON_MODELS:
            raise ValueError(f"Unknown configuration object: {name}")
        return getattr(self._state, name)

    def replace_collection(self, name: str, items: Iterable[BaseModel | dict[str, Any]]) -> None:
        model = COLLECTION_MODELS.get(name)
        if model is None:
            raise ValueError(f"Unknown collection: {name}")
        validated = [
            item if isinstance(item, model) else model.model_validate(_as_data(item))
            for item in items
        ]
        index = self._build_index(name, validated)
        self._state = self._state.model_copy(update={name: validated})
        self._indexes[name] = index

    def replace_singleton(self, name: str, value: BaseModel | dict[str, Any]) -> None:
        model = SINGLETON_MODELS.get(name)
        if model is None:
            raise ValueError(f"Unknown configuration object: {name}")
        validated = value if isinstance(value, model) else model.model_validate(_as_data(value))
        self._state = self._state.model_copy(update={name: validated})

    def replace_state(self, state: FullTimetableState) -> None:
        indexes = {name: self._build_index(name, getattr(state, name)) for name in COLLECTION_MODELS}
        self._state = state
        self._indexes = indexes

    def find_by_id(self, name: str, item_id: str | None) -> Any | None:
        if not item_id:
            return None
        index = self._indexes.get(name)
        if index is None:
            return None
        return index.get(item_id)

    def snapshot(self) -> dict[str, Any]:
        return self._state.model_dump(mode="json", exclude_none=True)

    @staticmethod
    def _build_index(name: str, items: Iterable[BaseModel]) -> dict[str, BaseModel]:
        index: dict[str, BaseModel] = {}
        for item in items:
            item_id = item.id
            if item_id in index:
                raise ValueError(f"Duplicate id {item_id!r} in {name}")
            index[item_id] = item
        return index


def _as_data(item: BaseModel | dict[str, Any]) -> dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump()
    return item
