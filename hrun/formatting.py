"""hrun formatting - render responses for the terminal."""

import json

from hrun.executor import Response


def format_body(body: str, content_type: str = "") -> str:
    """Pretty-print JSON bodies; anything else is returned unchanged."""
    stripped = body.strip()
    if "application/json" in content_type or stripped.startswith(("{", "[")):
        try:
            return json.dumps(json.loads(body), indent=2, ensure_ascii=False)
        except (json.JSONDecodeError, ValueError):
            pass
    return body


def format_response(
    response: Response,
    raw: bool = False,
    show_headers: bool = True,
) -> str:
    """Format a response for CLI output.

    Default output:
        STATUS: 200 OK
        TIME: 45ms
        HEADERS:
          Content-Type: application/json
        BODY:
        {...}
        CAPTURED:
          token=abc
    """
    if response.error:
        return f"ERROR: {response.error}\nTIME: {int(response.elapsed_ms)}ms"

    body = format_body(response.body, response.header("Content-Type") or "")
    if raw:
        return body

    lines: list[str] = [
        f"STATUS: {response.status or response.status_code}",
        f"TIME: {int(response.elapsed_ms)}ms",
    ]

    if show_headers and response.headers:
        lines.append("HEADERS:")
        for key, values in response.headers.items():
            for value in values:
                lines.append(f"  {key}: {value}")

    if response.body:
        lines.append("BODY:")
        lines.append(body)

    if response.captured_variables:
        lines.append("CAPTURED:")
        for name, value in response.captured_variables.items():
            lines.append(f"  {name}={value}")

    return "\n".join(lines)
