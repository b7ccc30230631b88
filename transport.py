"""Writer implementations and wire rendering for response models."""

from __future__ import annotations

import logging
import socket
from urllib.parse import quote

from response import ResponseModel, ResponseWriter

logger = logging.getLogger(__name__)

# Reserved URI characters and existing escapes pass through untouched.
LOCATION_SAFE_CHARS = "/:?#[]@!$&'()*+,;=%~"


class BufferWriter:
    """In-memory writer that keeps each write as a separate chunk."""

    def __init__(self) -> None:
        self.chunks: list[bytes] = []

    def write(self, data: bytes) -> None:
        self.chunks.append(bytes(data))

    def getvalue(self) -> bytes:
        return b"".join(self.chunks)


class SocketWriter:
    def __init__(self, client_socket: socket.socket) -> None:
        self.client_socket = client_socket

    def write(self, data: bytes) -> None:
        self.client_socket.sendall(data)


def render_head(response: ResponseModel, server_name: str | None = None) -> bytes:
    """Render the HTTP/1.1 status line and headers, including Content-Length."""
    length, _write = response.content()
    headers = response.headers(server_name)
    headers["Content-Length"] = str(length)
    if "Location" in headers:
        headers["Location"] = quote(headers["Location"], safe=LOCATION_SAFE_CHARS)

    header_lines = [f"HTTP/1.1 {response.status_code} {response.reason_phrase}"]
    header_lines.extend(f"{key}: {value}" for key, value in headers.items())
    return "\r\n".join(header_lines).encode("iso-8859-1") + b"\r\n\r\n"


def send_response(
    response: ResponseModel,
    writer: ResponseWriter,
    *,
    server_name: str | None = None,
) -> int:
    """Write head and body to ``writer`` and return the number of bytes sent."""
    head = render_head(response, server_name)
    writer.write(head)
    length, write = response.content()
    if write is not None and length:
        write(writer)
    logger.debug(
        "status=%s reason=%r bytes_out=%s",
        response.status_code,
        response.reason_phrase,
        len(head) + length,
    )
    return len(head) + length
