from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ApiResult:
    ok: bool
    payload: Any = None
    message: str = ""


def _pick(data: dict, *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def unwrap_envelope(data: Any) -> ApiResult:
    """Normalize a response body that may or may not be wrapped.

    Wrapped bodies carry the payload under 'result' or 'Result', plus optional
    'error'/'Error' and 'message'/'Message' fields. Anything else is taken to
    be the bare payload.
    """
    if isinstance(data, dict) and ("result" in data or "Result" in data):
        error = bool(_pick(data, "error", "Error"))
        message = _pick(data, "message", "Message") or ""
        return ApiResult(ok=not error, payload=_pick(data, "result", "Result"), message=str(message))
    return ApiResult(ok=True, payload=data)
