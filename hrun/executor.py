"""hrun executor - HTTP request execution."""

import logging
import time

import requests

from hrun.capture import capture
from hrun.core import DEFAULT_TIMEOUT
from hrun.models import Request

logger = logging.getLogger(__name__)


class RequestBuildError(Exception):
    """The request could not be built, so nothing was sent."""

    def __init__(self, request: Request, message: str):
        super().__init__(message)
        self.request = request


class Response:
    """Result of executing one request."""

    def __init__(self, request: Request | None = None):
        self.request = request
        self.status_code: int = 0
        self.status: str = ""
        self.headers: dict[str, list[str]] = {}
        self.body: str = ""
        self.elapsed_ms: float = 0
        self.error: str | None = None
        self.captured_variables: dict[str, str] = {}

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status_code < 300

    def header(self, name: str) -> str | None:
        """Case-insensitive lookup of the first value of a header."""
        lower = name.lower()
        for key, values in self.headers.items():
            if key.lower() == lower and values:
                return values[0]
        return None


def infer_content_type(body: str) -> str:
    """Guess a Content-Type from the first character of a body."""
    stripped = body.strip()
    if stripped.startswith(("{", "[")):
        return "application/json"
    if stripped.startswith("<"):
        return "application/xml"
    return "text/plain"


def _outgoing_headers(request: Request) -> dict[str, str]:
    # requests takes one value per case-insensitive name; repeated headers
    # are comma-joined under the first spelling seen.
    grouped: dict[str, tuple[str, list[str]]] = {}
    for name, values in request.headers.items():
        _, joined = grouped.setdefault(name.lower(), (name, []))
        joined.extend(values)
    headers = {name: ", ".join(values) for name, values in grouped.values()}
    if request.body and not any(k.lower() == "content-type" for k in headers):
        headers["Content-Type"] = infer_content_type(request.body)
    return headers


def _response_headers(resp: requests.Response) -> dict[str, list[str]]:
    """Collect response headers, keeping repeated names when available."""
    source = resp.raw.headers if resp.raw is not None else resp.headers
    headers: dict[str, list[str]] = {}
    for key, value in source.items():
        headers.setdefault(key, []).append(value)
    return headers


def execute_request(
    request: Request,
    timeout: float = DEFAULT_TIMEOUT,
    session: requests.Session | None = None,
) -> Response:
    """Execute a resolved request and return a Response.

    - Infers Content-Type from the body when none is set
    - Captures timing up to the end of the body read
    - Applies the request's capture rules to the response body
    - Transport failures never raise - they set Response.error, keeping
      any status and headers that were already received

    Raises RequestBuildError when the request cannot be built at all
    (bad URL, invalid header); no Response exists in that case.
    """
    result = Response(request)
    own_session = session is None
    if own_session:
        session = requests.Session()

    try:
        start = time.monotonic()
        try:
            prepared = session.prepare_request(
                requests.Request(
                    method=request.method,
                    url=request.url,
                    headers=_outgoing_headers(request),
                    data=request.body.encode("utf-8") if request.body else None,
                ),
            )
        except (requests.exceptions.RequestException, ValueError) as e:
            raise RequestBuildError(request, f"Invalid request: {e}") from e

        logger.debug("%s %s", prepared.method, prepared.url)
        try:
            resp = session.send(
                prepared,
                timeout=timeout,
                allow_redirects=True,
                stream=True,
            )
            result.status_code = resp.status_code
            result.status = f"{resp.status_code} {resp.reason or ''}".strip()
            result.headers = _response_headers(resp)
            result.body = resp.text
        except requests.exceptions.Timeout:
            result.error = f"Request timed out after {timeout}s"
        except requests.exceptions.ConnectionError as e:
            result.error = f"Connection error: {e}"
        except requests.exceptions.RequestException as e:
            result.error = f"Request failed: {e}"
        except Exception as e:
            result.error = f"Unexpected error: {e}"
        result.elapsed_ms = (time.monotonic() - start) * 1000
    finally:
        if own_session:
            session.close()

    if result.error:
        logger.debug("%s failed: %s", request.label, result.error)
        return result

    if request.captures:
        result.captured_variables = capture(result.body, request.captures)
        logger.debug("Captured %s from %s", sorted(result.captured_variables), request.label)

    return result
