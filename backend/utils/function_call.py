# backend/utils/function_call.py
"""
Parse the agent's single-line function call format:

    <function=fetch_slots>{"selected_day": "mon"}</function>
"""

import json
import re
from typing import Any, Dict, Optional, Tuple

FUNCTION_CALL_RE = re.compile(r'<function=([A-Za-z_][\w]*)>\s*([\s\S]*?)\s*</function>')


def decode_arguments(raw: Any) -> Dict[str, Any]:
    """Arguments may arrive as a mapping, a JSON string, or nothing."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        s = raw.strip()
        # the prompt's example doubles the braces
        if s.startswith("{{") and s.endswith("}}"):
            s = s[1:-1]
        parsed = json.loads(s)
        if isinstance(parsed, dict):
            return parsed
    raise ValueError(f"Function arguments must be a JSON object, got {type(raw).__name__}")


def parse_function_call(text: str) -> Optional[Tuple[str, Dict[str, Any]]]:
    """Return (name, arguments) or None when the text isn't a function call."""
    if not text:
        return None
    m = FUNCTION_CALL_RE.search(text)
    if not m:
        return None
    return m.group(1), decode_arguments(m.group(2))
