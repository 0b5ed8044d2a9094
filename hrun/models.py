"""hrun models - parsed request file records."""

from __future__ import annotations

from dataclasses import dataclass, field

METHODS = (
    "GET",
    "POST",
    "PUT",
    "DELETE",
    "PATCH",
    "HEAD",
    "OPTIONS",
    "TRACE",
    "CONNECT",
)


@dataclass
class CaptureRule:
    """Store the value at ``path`` of a JSON response under ``variable``."""

    variable: str
    path: str


@dataclass
class Request:
    method: str = ""
    url: str = ""
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: str = ""
    name: str = ""
    description: str = ""
    source_line: int = 0
    captures: list[CaptureRule] = field(default_factory=list)

    def add_header(self, name: str, value: str) -> None:
        """Append a value, keeping repeated header names."""
        self.headers.setdefault(name, []).append(value)

    def is_complete(self) -> bool:
        return bool(self.method and self.url)

    @property
    def label(self) -> str:
        return f"{self.method} {self.url}"


@dataclass
class HTTPFile:
    path: str = ""
    requests: list[Request] = field(default_factory=list)
    variables: dict[str, str] = field(default_factory=dict)

    def find(self, name: str) -> Request | None:
        """Return the first request named ``name``."""
        for request in self.requests:
            if request.name == name:
                return request
        return None
