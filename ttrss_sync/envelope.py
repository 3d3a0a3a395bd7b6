"""Response envelope decoding.

Every API response is wrapped as ``{"seq": ..., "status": ..., "content": ...}``.
The status is checked first; content is only decoded when the status says
the call succeeded, and then it must match the declared type exactly.
"""

from __future__ import annotations

import json
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, StrictInt, ValidationError

from .errors import ContentDecodeError, ProtocolStatusError

T = TypeVar("T")

STATUS_OK = 0


class RemoteEnvelope(BaseModel, Generic[T]):
    seq: StrictInt = Field(ge=0, description="Request sequence number echoed by the server")
    status: StrictInt = Field(ge=0, description="0 on success, nonzero on failure")
    content: T


def _error_code(content: Any) -> str | None:
    # TT-RSS reports failures as {"error": "NOT_LOGGED_IN"}; anything else is opaque.
    if isinstance(content, dict):
        code = content.get("error")
        if isinstance(code, str):
            return code
    return None


def decode_response(raw: bytes, result_type: Any, *, operation: str | None = None) -> Any:
    """Validate a raw response body and return its typed content.

    Raises :class:`ProtocolStatusError` for any nonzero status (content is
    ignored) and :class:`ContentDecodeError` when the body is not an
    envelope or its content does not match *result_type*.
    """
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise ContentDecodeError(f"response is not valid JSON: {exc}", operation=operation) from exc

    if not isinstance(data, dict):
        raise ContentDecodeError("response is not a JSON object", operation=operation)

    status = data.get("status")
    if isinstance(status, bool) or not isinstance(status, int):
        raise ContentDecodeError("response has no integer status", operation=operation)

    if status != STATUS_OK:
        raise ProtocolStatusError(
            status,
            error_code=_error_code(data.get("content")),
            operation=operation,
        )

    try:
        envelope = RemoteEnvelope[result_type].model_validate(data)
    except ValidationError as exc:
        raise ContentDecodeError(
            f"unexpected content for {operation or 'response'}: "
            f"{exc.error_count()} validation error(s)",
            operation=operation,
        ) from exc
    return envelope.content
