"""Pull a JSON object out of free-form model output.

Models wrap their JSON in prose or code fences, so the candidate is the span
from the first ``{`` to the last ``}``. Anything that does not decode to a
JSON object comes back as ``Unparsed`` carrying the raw text; callers treat
that as their ordinary fallback branch.
"""

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Parsed:
    value: dict[str, Any]


@dataclass(frozen=True)
class Unparsed:
    raw: str


def extract_json(text: str) -> Parsed | Unparsed:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return Unparsed(text)
    try:
        value = json.loads(text[start : end + 1])
    except ValueError:
        return Unparsed(text)
    if not isinstance(value, dict):
        return Unparsed(text)
    return Parsed(value)
