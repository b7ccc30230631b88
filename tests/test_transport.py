"""Tests for response writers and wire rendering."""

import logging
import socket

import pytest

from response import ResponseModel
from transport import BufferWriter, SocketWriter, render_head, send_response


def test_render_head_includes_status_line_and_length() -> None:
    response = ResponseModel.html(200, "hi")

    head = render_head(response, server_name="Test 1.0")

    assert head.startswith(b"HTTP/1.1 200 OK\r\n")
    assert b"Server: Test 1.0\r\n" in head
    assert b"Content-Type: text/html\r\n" in head
    assert f"Content-Length: {len(response.body)}\r\n".encode("ascii") in head
    assert head.endswith(b"\r\n\r\n")


def test_render_head_for_redirect_has_location_and_zero_length() -> None:
    head = render_head(ResponseModel.redirect("/login"))

    assert head.startswith(b"HTTP/1.1 301 Moved Permanently\r\n")
    assert b"Location: /login\r\n" in head
    assert b"Content-Length: 0\r\n" in head


def test_render_head_percent_encodes_non_latin1_location() -> None:
    response = ResponseModel.redirect("/日本?q=a&b=%20")

    head = render_head(response)

    assert b"Location: /%E6%97%A5%E6%9C%AC?q=a&b=%20\r\n" in head
    assert response.headers()["Location"] == "/日本?q=a&b=%20"


def test_render_head_uses_unknown_reason_for_unmapped_status() -> None:
    head = render_head(ResponseModel.text(418, "teapot"))

    assert head.startswith(b"HTTP/1.1 418 Unknown\r\n")


def test_send_response_writes_head_then_body() -> None:
    response = ResponseModel.text(404, "missing")
    writer = BufferWriter()

    sent = send_response(response, writer)

    assert len(writer.chunks) == 2
    assert writer.chunks[1] == b"missing"
    assert writer.getvalue().endswith(b"\r\n\r\nmissing")
    assert sent == len(writer.getvalue())


def test_send_response_skips_body_write_for_empty_body(
    caplog: pytest.LogCaptureFixture,
) -> None:
    writer = BufferWriter()

    with caplog.at_level(logging.DEBUG, logger="transport"):
        send_response(ResponseModel.redirect("/next"), writer)

    assert len(writer.chunks) == 1
    assert "status=301" in caplog.text


def test_socket_writer_forwards_to_sendall() -> None:
    left, right = socket.socketpair()
    try:
        writer = SocketWriter(left)
        ResponseModel.text(200, "over the wire").write_to(writer)
        right.settimeout(2)
        received = right.recv(4096)
    finally:
        left.close()
        right.close()

    assert received == b"over the wire"
