"""Request template data structures."""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any


class HttpMethod(str, Enum):
    """HTTP methods a request template may use."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


@dataclass(frozen=True)
class Variable:
    """A single environment variable."""
    key: str
    value: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Variable":
        return cls(key=data["key"], value=data.get("value", ""))


@dataclass(frozen=True)
class Header:
    """An ordered request header pair."""
    key: str
    value: str


@dataclass(frozen=True)
class RequestTemplate:
    """A request whose URL, header values and body may contain placeholders."""
    method: HttpMethod
    url: str
    headers: List[Header] = field(default_factory=list)
    body: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RequestTemplate":
        """Build a template from a stored or submitted mapping."""
        return cls(
            method=HttpMethod(data["method"]),
            url=data["url"],
            headers=[Header(key=h["key"], value=h.get("value", "")) for h in data.get("headers") or []],
            body=data.get("body"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method.value,
            "url": self.url,
            "headers": [{"key": h.key, "value": h.value} for h in self.headers],
            "body": self.body,
        }


@dataclass(frozen=True)
class ResolvedRequest(RequestTemplate):
    """A request template with every placeholder substituted."""

    def header_map(self) -> Dict[str, str]:
        """Headers as a mapping, dropping pairs with an empty key."""
        return {h.key: h.value for h in self.headers if h.key}
