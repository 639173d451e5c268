"""JSON encoding of hand records.

Hands are written wrapped as ``{"ohh": {...}}``, the form OHH files use;
the flat object is accepted on input as well. A file may hold several
hands separated by blank lines.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator, Union

from ohh.models import HandRecord

OHH_WRAPPER_KEY = "ohh"


def hand_to_dict(hand: HandRecord, wrapped: bool = True) -> dict[str, Any]:
    data = hand.model_dump(mode="json", exclude_none=True)
    if wrapped:
        return {OHH_WRAPPER_KEY: data}
    return data


def hand_to_json(hand: HandRecord, wrapped: bool = True) -> str:
    return json.dumps(hand_to_dict(hand, wrapped=wrapped), indent=2)


def unwrap(data: dict[str, Any]) -> dict[str, Any]:
    """Strip the ``ohh`` wrapper if present."""
    inner = data.get(OHH_WRAPPER_KEY)
    if isinstance(inner, dict):
        return inner
    return data


def hand_from_dict(data: dict[str, Any]) -> HandRecord:
    if not isinstance(data, dict):
        raise ValueError("Hand history must be a JSON object")
    return HandRecord.model_validate(unwrap(data))


def hand_from_json(text: str) -> HandRecord:
    return hand_from_dict(json.loads(text))


def iter_hands(text: str) -> Iterator[HandRecord]:
    """Yield every hand in a multi-hand OHH document."""
    decoder = json.JSONDecoder()
    pos = 0
    end = len(text)
    while True:
        while pos < end and text[pos].isspace():
            pos += 1
        if pos >= end:
            return
        data, pos = decoder.raw_decode(text, pos)
        yield hand_from_dict(data)


def save_to_file(
    hand: HandRecord, path: Union[str, Path], wrapped: bool = True
) -> None:
    Path(path).write_text(hand_to_json(hand, wrapped=wrapped), encoding="utf-8")


def append_to_file(hand: HandRecord, path: Union[str, Path]) -> None:
    """Append a wrapped hand followed by a blank line."""
    with open(path, "a", encoding="utf-8") as f:
        f.write(hand_to_json(hand))
        f.write("\n\n")


def load_from_file(path: Union[str, Path]) -> list[HandRecord]:
    return list(iter_hands(Path(path).read_text(encoding="utf-8")))
