"""Response envelopes shared by every router."""
from typing import Any, Dict, List, Optional


def success(data: Any) -> Dict:
    return {"status": "success", "data": data}


def success_list(items: List[Any], **extra) -> Dict:
    body = {"status": "success", "results": len(items), "data": items}
    body.update(extra)
    return body


def error(message: str, detail: Optional[str] = None) -> Dict:
    body = {"status": "error", "message": message}
    if detail is not None:
        body["error"] = detail
    return body
