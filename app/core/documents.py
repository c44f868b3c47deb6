"""
JSON codec for the document attributes of a volunteer row.

Skills, interests, availability and drive history live in text columns.
Encoding None yields None (the column's unset marker) so callers can tell
"not provided" apart from an explicitly empty collection, which encodes as
"[]". Decoding never raises: absent, blank or malformed text degrades to
the empty value for the target type.
"""

import json
import logging
from typing import Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from app.schemas.volunteer import Availability

logger = logging.getLogger(__name__)

_availability_adapter = TypeAdapter(Availability)


def _load_json(text: Optional[str]):
    if text is None or not text.strip():
        return None
    try:
        return json.loads(text)
    except (ValueError, TypeError, RecursionError):
        logger.warning(f"Discarding malformed document attribute: {text[:80]!r}")
        return None


def _string_items(payload) -> List[str]:
    if not isinstance(payload, list):
        if payload is not None:
            logger.warning(f"Expected a JSON array, got {type(payload).__name__}")
        return []
    return [item for item in payload if isinstance(item, str)]


def encode_tags(values: Optional[Iterable[str]]) -> Optional[str]:
    """Encode a tag set (skills, interests). Duplicates collapse, order is normalized."""
    if values is None:
        return None
    return json.dumps(sorted(set(values)))


def decode_tags(text: Optional[str]) -> List[str]:
    return sorted(set(_string_items(_load_json(text))))


def encode_ids(values: Optional[Iterable[str]]) -> Optional[str]:
    """Encode an ordered identifier list (drives applied / completed)."""
    if values is None:
        return None
    return json.dumps(list(values))


def decode_ids(text: Optional[str]) -> List[str]:
    return _string_items(_load_json(text))


def encode_availability(descriptor) -> Optional[str]:
    if descriptor is None:
        return None
    return _availability_adapter.dump_json(descriptor).decode("utf-8")


def decode_availability(text: Optional[str]):
    """Return a RecurringAvailability, a DateRangeAvailability or None."""
    payload = _load_json(text)
    if payload is None:
        return None
    try:
        return _availability_adapter.validate_python(payload)
    except ValidationError as e:
        logger.warning(f"Discarding invalid availability document: {e.error_count()} error(s)")
        return None
