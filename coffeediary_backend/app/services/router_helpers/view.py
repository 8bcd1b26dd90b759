# coffeediary_backend/app/services/router_helpers/view.py
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


# What it does: page view-state envelope shared by every page.
def page_view(error: Optional[str] = None, **data: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {"loading": False, "error": error}
    out.update({k: _plain(v) for k, v in data.items()})
    return out
