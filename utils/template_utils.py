"""
Detection of template variables the voice agent failed to substitute.

The agent platform sends the literal "{{day_time_mentioned_by_user}}" when a
variable was never filled in; such values mean "absent", not data.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

_TEMPLATE_PAT = re.compile(r"\{\{[^}]*\}\}")


def is_unsubstituted_template(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return bool(_TEMPLATE_PAT.search(value.strip()))


def unsubstituted_fields(body: Dict[str, Any]) -> List[str]:
    """Names of the fields in `body` that still hold template markers."""
    return [k for k, v in (body or {}).items() if is_unsubstituted_template(v)]
