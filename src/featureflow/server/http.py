"""
Framework-neutral request/response objects handed to steps.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from ..errors import ResponseAlreadySentError


@dataclass
class FeatureRequest:
    method: str
    path: str
    params: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    async def from_starlette(cls, request: Request) -> "FeatureRequest":
        raw = await request.body()
        return cls(
            method=request.method,
            path=request.url.path,
            params=dict(request.path_params),
            query=dict(request.query_params),
            body=_parse_body(raw, request.headers.get("content-type", "")),
            headers={key.lower(): value for key, value in request.headers.items()},
        )


def _parse_body(raw: bytes, content_type: str) -> Any:
    if not raw:
        return None
    if "json" in content_type.lower():
        try:
            return json.loads(raw)
        except ValueError:
            return raw.decode("utf-8", errors="replace")
    return raw.decode("utf-8", errors="replace")


class FeatureResponse:
    """
    Mutable response handle. Exactly one terminal write (``send``, ``json``
    or ``end``) is allowed; ``sent`` tells steps whether it happened.
    """

    def __init__(self) -> None:
        self.status_code = 200
        self.headers: Dict[str, str] = {}
        self.body: Optional[bytes] = None
        self.media_type: Optional[str] = None
        self._json: Any = None
        self._is_json = False
        self.sent = False

    def status(self, code: int) -> "FeatureResponse":
        self.status_code = int(code)
        return self

    def set_header(self, name: str, value: str) -> "FeatureResponse":
        self.headers[name] = str(value)
        return self

    def _finish(self) -> None:
        if self.sent:
            raise ResponseAlreadySentError()
        self.sent = True

    def json(self, payload: Any) -> "FeatureResponse":
        self._finish()
        self._json = payload
        self._is_json = True
        return self

    def send(self, payload: Any = None) -> "FeatureResponse":
        if isinstance(payload, (dict, list)):
            return self.json(payload)
        self._finish()
        if isinstance(payload, bytes):
            self.body = payload
            self.media_type = "application/octet-stream"
        elif payload is not None:
            self.body = str(payload).encode("utf-8")
            self.media_type = "text/plain; charset=utf-8"
        return self

    def end(self) -> "FeatureResponse":
        self._finish()
        return self

    @property
    def payload(self) -> Any:
        return self._json if self._is_json else self.body

    def to_starlette(self) -> Response:
        if self._is_json:
            return JSONResponse(self._json, status_code=self.status_code, headers=self.headers)
        return Response(
            content=self.body or b"",
            status_code=self.status_code,
            headers=self.headers,
            media_type=self.media_type,
        )


__all__ = ["FeatureRequest", "FeatureResponse"]
