from __future__ import annotations

import json
import re
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from artbot.errors import MalformedResponseError

RecordT = TypeVar("RecordT", bound=BaseModel)

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.DOTALL)


def parse_json_from_text(text: str) -> Any:
    """Pull the first JSON value out of a completion.

    Looks inside a ```json fenced block first, then falls back to the first
    ``[`` or ``{`` in the raw text.
    """
    match = _FENCED_JSON.search(text)
    candidate = match.group(1).strip() if match else text.strip()
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    starts = [i for i in (candidate.find("["), candidate.find("{")) if i != -1]
    if not starts:
        raise MalformedResponseError("no JSON value found in completion")
    try:
        value, _ = json.JSONDecoder().raw_decode(candidate[min(starts):])
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"invalid JSON in completion: {exc}") from exc
    return value


def _as_record_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        # {"ideas": [...]} style wrappers
        lists = [v for v in value.values() if isinstance(v, list) and v and all(isinstance(i, dict) for i in v)]
        if len(lists) == 1 and len(value) == 1:
            return lists[0]
        return [value]
    raise MalformedResponseError(f"expected a list or object, got {type(value).__name__}")


def parse_records(text: str, model: Type[RecordT]) -> List[RecordT]:
    records = _as_record_list(parse_json_from_text(text))
    if not records:
        raise MalformedResponseError("completion contained no records")
    try:
        return TypeAdapter(List[model]).validate_python(records)
    except ValidationError as exc:
        raise MalformedResponseError(f"records failed validation: {exc.error_count()} errors") from exc
