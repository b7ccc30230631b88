"""HTTP response model: status, body, content type and derived headers."""

import json
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Protocol

import config

logger = logging.getLogger(__name__)


class ResponseWriter(Protocol):
    """Sink that accepts an ordered sequence of raw bytes."""

    def write(self, data: bytes) -> None: ...


class SerializationError(ValueError):
    """Raised when a value cannot be turned into a JSON response body."""


class InvalidObject(SerializationError):
    """The value is not representable as JSON."""


class NotSupported(SerializationError):
    """The value is valid JSON but the serializer cannot encode it."""


class ContentType(Enum):
    TEXT = "text"
    HTML = "html"
    JSON = "json"
    NONE = "none"


class StatusCategory(Enum):
    OK = "OK"
    CREATED = "Created"
    ACCEPTED = "Accepted"
    MOVED_PERMANENTLY = "Moved Permanently"
    BAD_REQUEST = "Bad Request"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "Not Found"
    INTERNAL_SERVER_ERROR = "Internal Server Error"
    UNKNOWN = "Unknown"


STATUS_CATEGORIES: dict[int, StatusCategory] = {
    200: StatusCategory.OK,
    201: StatusCategory.CREATED,
    202: StatusCategory.ACCEPTED,
    301: StatusCategory.MOVED_PERMANENTLY,
    400: StatusCategory.BAD_REQUEST,
    401: StatusCategory.UNAUTHORIZED,
    403: StatusCategory.FORBIDDEN,
    404: StatusCategory.NOT_FOUND,
    500: StatusCategory.INTERNAL_SERVER_ERROR,
}

CONTENT_TYPE_HEADERS: dict[ContentType, str] = {
    ContentType.JSON: "application/json",
    ContentType.HTML: "text/html",
}


@dataclass(frozen=True, slots=True)
class Plain:
    pass


@dataclass(frozen=True, slots=True)
class Redirect:
    location: str


ResponseKind = Plain | Redirect


class ResponseContent(NamedTuple):
    length: int
    write: Callable[[ResponseWriter], None] | None


def status_category(status_code: int) -> StatusCategory:
    return STATUS_CATEGORIES.get(status_code, StatusCategory.UNKNOWN)


def build_headers(
    content_type: ContentType,
    kind: ResponseKind,
    server_name: str | None = None,
) -> dict[str, str]:
    """Compose a fresh header mapping for a response of the given shape.

    ``server_name`` defaults to ``config.SERVER_NAME`` read at call time.
    """
    headers = {"Server": server_name if server_name is not None else config.SERVER_NAME}

    content_type_header = CONTENT_TYPE_HEADERS.get(content_type)
    if content_type_header is not None:
        headers["Content-Type"] = content_type_header

    if isinstance(kind, Redirect):
        headers["Location"] = kind.location

    return headers


def validate_json_object(obj: Any) -> None:
    """Raise InvalidObject unless ``obj`` is a finite, acyclic JSON value."""
    active: set[int] = set()
    stack: list[tuple[Any, bool]] = [(obj, False)]
    while stack:
        node, leaving = stack.pop()
        if leaving:
            active.discard(id(node))
            continue

        if isinstance(node, float):
            if not math.isfinite(node):
                raise InvalidObject(f"Non-finite float {node!r} is not valid JSON")
            continue
        if node is None or isinstance(node, (str, int)):
            continue

        if isinstance(node, dict):
            for key in node:
                if not isinstance(key, str):
                    raise InvalidObject(
                        f"JSON object keys must be strings, got {type(key).__name__}"
                    )
            children = list(node.values())
        elif isinstance(node, list):
            children = list(node)
        else:
            raise InvalidObject(f"Object of type {type(node).__name__} is not valid JSON")

        if id(node) in active:
            raise InvalidObject("Circular reference detected")
        active.add(id(node))
        stack.append((node, True))
        stack.extend((child, False) for child in reversed(children))


def serialize_json(obj: Any) -> bytes:
    """Pretty-print ``obj`` as UTF-8 JSON bytes."""
    validate_json_object(obj)
    try:
        serialized = json.dumps(
            obj,
            indent=config.JSON_INDENT,
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError, RecursionError) as exc:
        raise NotSupported(f"JSON serializer cannot encode value: {exc}") from exc
    try:
        return serialized.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidObject(f"String is not valid UTF-8 text: {exc}") from exc


@dataclass(frozen=True, slots=True, eq=False)
class ResponseModel:
    status_code: int
    body: bytes = b""
    content_type: ContentType = ContentType.NONE
    kind: ResponseKind = field(default_factory=Plain)

    def __post_init__(self) -> None:
        if not isinstance(self.body, (bytes, bytearray, memoryview)):
            raise TypeError(f"Response body must be bytes, got {type(self.body).__name__}")
        if not isinstance(self.body, bytes):
            object.__setattr__(self, "body", bytes(self.body))
        if isinstance(self.kind, Redirect):
            if self.status_code != 301 or self.body or self.content_type is not ContentType.NONE:
                raise ValueError(
                    "Redirect responses must be 301 with an empty body and no content type"
                )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResponseModel):
            return NotImplemented
        return self.status_code == other.status_code

    def __hash__(self) -> int:
        return hash(self.status_code)

    @classmethod
    def text(cls, status_code: int, text: str) -> "ResponseModel":
        return cls(status_code, text.encode("utf-8"), ContentType.TEXT)

    @classmethod
    def html(cls, status_code: int, fragment: str) -> "ResponseModel":
        """Wrap ``fragment`` in a minimal UTF-8 document.

        The fragment is embedded verbatim; escaping is the caller's job.
        """
        document = config.HTML_TEMPLATE.format(fragment=fragment)
        return cls(status_code, document.encode("utf-8"), ContentType.HTML)

    @classmethod
    def json(cls, status_code: int, obj: Any) -> "ResponseModel":
        """Build a JSON response.

        Arrays must be lists; tuples are rejected so the body decodes back
        to an equal value.

        Raises InvalidObject when ``obj`` is not representable as JSON and
        NotSupported when the encoder cannot express a valid value.
        """
        try:
            body = serialize_json(obj)
        except SerializationError as exc:
            logger.debug("Rejected JSON body for status %s: %s", status_code, exc)
            raise
        return cls(status_code, body, ContentType.JSON)

    @classmethod
    def error(cls, message: str) -> "ResponseModel":
        payload = {"error": True, "message": message}
        try:
            return cls.json(500, payload)
        except SerializationError as exc:
            raise RuntimeError(f"Error payload failed to serialize: {payload!r}") from exc

    @classmethod
    def redirect(cls, location: str) -> "ResponseModel":
        return cls(301, b"", ContentType.NONE, Redirect(location))

    @property
    def category(self) -> StatusCategory:
        return status_category(self.status_code)

    @property
    def reason_phrase(self) -> str:
        return self.category.value

    @property
    def redirect_location(self) -> str | None:
        if isinstance(self.kind, Redirect):
            return self.kind.location
        return None

    def headers(self, server_name: str | None = None) -> dict[str, str]:
        return build_headers(self.content_type, self.kind, server_name)

    def content(self) -> ResponseContent:
        """Return the body length and a deferred write step."""
        return ResponseContent(len(self.body), self.write_to)

    def write_to(self, writer: ResponseWriter) -> None:
        writer.write(self.body)
