from __future__ import annotations

import json
import zlib
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..core.config import DEFAULT_JSON_BODY_LIMIT
from ..core.errors import (
    MalformedBodyError,
    PayloadTooLargeError,
    UnsupportedBodyError,
)
from ..observability.logging import get_logger

logger = get_logger("api.body_parser")

JSON_MEDIA_TYPE = "application/json"
_JSON_WHITESPACE = " \t\n\r"


def parse_content_type(header: Optional[str]) -> Tuple[str, Dict[str, str]]:
    """Split a Content-Type header into a lower-cased media type and its params."""
    if not header:
        return "", {}
    media_type, _, rest = header.partition(";")
    params: Dict[str, str] = {}
    for item in rest.split(";"):
        key, sep, value = item.partition("=")
        if not sep:
            continue
        params[key.strip().lower()] = value.strip().strip('"')
    return media_type.strip().lower(), params


def _is_ascii_digits(text: str) -> bool:
    return text.isascii() and text.isdigit()


def has_body(request: Request) -> bool:
    headers = request.headers
    return "transfer-encoding" in headers or "content-length" in headers


def _reject_nan(value: str) -> Any:
    raise ValueError(f"Unexpected token {value} in JSON")


def inflate(raw: bytes, encoding: str, limit: int) -> bytes:
    if encoding in ("", "identity"):
        return raw
    if encoding == "gzip":
        decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS)
    elif encoding == "deflate":
        decompressor = zlib.decompressobj()
    else:
        raise UnsupportedBodyError(f'unsupported content encoding "{encoding}"')
    try:
        data = decompressor.decompress(raw, limit + 1)
    except zlib.error as exc:
        raise MalformedBodyError(f"invalid {encoding} data: {exc}") from exc
    if len(data) > limit:
        raise PayloadTooLargeError("request entity too large")
    if not decompressor.eof:
        raise MalformedBodyError(f"invalid {encoding} data: unexpected end of stream")
    if decompressor.unused_data:
        raise MalformedBodyError(f"invalid {encoding} data: trailing bytes after stream")
    return data


def decode_json_body(
    raw: bytes,
    charset: str = "utf-8",
    encoding: str = "identity",
    limit: int = DEFAULT_JSON_BODY_LIMIT,
) -> Any:
    """
    Decode a raw JSON request body.

    - only ``utf-*`` charsets are accepted
    - an empty body yields ``{}``
    - strict: the document must start with ``{`` or ``[``
    """
    charset = (charset or "utf-8").lower()
    if not charset.startswith("utf-"):
        raise UnsupportedBodyError(f'unsupported charset "{charset.upper()}"')
    if len(raw) > limit:
        raise PayloadTooLargeError("request entity too large")

    data = inflate(raw, encoding.strip().lower(), limit)
    try:
        text = data.decode(charset)
    except LookupError as exc:
        raise UnsupportedBodyError(f'unsupported charset "{charset.upper()}"') from exc
    except UnicodeDecodeError as exc:
        raise MalformedBodyError(f"invalid {charset} body: {exc.reason}") from exc

    text = text.lstrip("\ufeff")
    if text == "":
        return {}

    first = text.lstrip(_JSON_WHITESPACE)[:1]
    if first not in ("{", "["):
        raise MalformedBodyError(
            "body must be a JSON object or array"
            + (f", got token {first!r}" if first else "")
        )

    try:
        return json.loads(text, parse_constant=_reject_nan)
    except RecursionError as exc:
        raise MalformedBodyError("invalid JSON body: nesting too deep") from exc
    except ValueError as exc:
        raise MalformedBodyError(f"invalid JSON body: {exc}") from exc


class JSONBodyParserMiddleware(BaseHTTPMiddleware):
    """
    Parses JSON request bodies into ``request.state.json_body`` before routing.

    Runs for every request, so a malformed body is rejected even on
    routes that would otherwise 404.
    """

    def __init__(self, app: ASGIApp, limit: int = DEFAULT_JSON_BODY_LIMIT) -> None:
        super().__init__(app)
        self.limit = limit

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request.state.json_body = None

        media_type, params = parse_content_type(request.headers.get("content-type"))
        if media_type != JSON_MEDIA_TYPE or not has_body(request):
            return await call_next(request)

        try:
            request.state.json_body = await self._read(request, params)
        except MalformedBodyError as exc:
            logger.warning(
                "Rejected request body",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": exc.status_code,
                    "error": exc.detail,
                },
            )
            return JSONResponse(
                status_code=exc.status_code, content={"detail": exc.detail}
            )

        return await call_next(request)

    async def _read(self, request: Request, params: Dict[str, str]) -> Any:
        declared = request.headers.get("content-length")
        if declared is not None and _is_ascii_digits(declared.strip()):
            if int(declared) > self.limit:
                raise PayloadTooLargeError("request entity too large")

        raw = await request.body()
        return decode_json_body(
            raw,
            charset=params.get("charset", "utf-8"),
            encoding=request.headers.get("content-encoding", "identity"),
            limit=self.limit,
        )
