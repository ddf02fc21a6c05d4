from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import ValidationError

from app.db.defaults import default_state_document
from app.schemas.timetable import (
    COLLECTION_MODELS,
    SINGLETON_MODELS,
    FullTimetableState,
)

logger = logging.getLogger(__name__)


def backfill_object(defaults: dict[str, Any], loaded: Any) -> dict[str, Any]:
    """Key-wise default fill of one configuration object.

    Every key of ``defaults`` takes the loaded value when that value is
    present and not null; a list-valued default is kept when the loaded value
    is not a list. Keys the defaults do not know are dropped.
    """
    result = dict(defaults)
    if not isinstance(loaded, dict):
        return result
    for key, default_value in defaults.items():
        value = loaded.get(key)
        if value is None:
            continue
        if isinstance(default_value, list) and not isinstance(value, list):
            continue
        result[key] = value
    return result


def normalize_state_document(
    raw: dict[str, Any],
    *,
    missing_collections: Literal["default", "empty"] = "default",
) -> FullTimetableState:
    """Turn a loosely shaped state document into a valid FullTimetableState.

    Collections that are not lists (or fail validation) fall back to the
    built-in dataset, or to an empty list when ``missing_collections`` is
    ``"empty"``. Singletons are backfilled against the defaults.
    """
    defaults = default_state_document()
    document: dict[str, Any] = {}

    for name, model in COLLECTION_MODELS.items():
        fallback = defaults[name] if missing_collections == "default" else []
        value = raw.get(name)
        if not isinstance(value, list):
            document[name] = fallback
            continue
        try:
            items = [model.model_validate(item).model_dump() for item in value]
        except ValidationError as exc:
            logger.warning("Discarding invalid %s collection (%d error(s))", name, exc.error_count())
            document[name] = fallback
            continue
        if len({item["id"] for item in items}) != len(items):
            logger.warning("Discarding %s collection with duplicate ids", name)
            document[name] = fallback
            continue
        document[name] = items

    for name, model in SINGLETON_MODELS.items():
        merged = backfill_object(defaults[name], raw.get(name))
        try:
            document[name] = model.model_validate(merged).model_dump()
        except ValidationError as exc:
            logger.warning("Discarding invalid %s object (%d error(s))", name, exc.error_count())
            document[name] = defaults[name]

    return FullTimetableState.model_validate(document)
