"""Best-effort JSON extraction from free-form model output."""

import json
import re
from typing import Any

_OBJECT_SPAN = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Parse the span from the first ``{`` to the last ``}`` as a JSON object.

    Returns None when there is no such span, it is not valid JSON, or it
    decodes to something other than an object.
    """
    if not text:
        return None
    match = _OBJECT_SPAN.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None
