r"""
Conversion between :class:`httpx.Response` objects and their textual HTTP/1.x form.

The text form is what ends up in the stores::

    HTTP/1.1 200 OK\r\n
    Content-Type: text/plain\r\n
    Content-Length: 2\r\n
    \r\n
    ho
"""

from __future__ import annotations

import re
import typing as tp

import httpx

from ._exceptions import ParseError
from ._utils import HEADERS_ENCODING

__all__ = ("dumps_response", "loads_response")

CRLF = "\r\n"
STATUS_LINE = re.compile(r"^(HTTP/\d(?:\.\d)?) ([1-9]\d\d)(?: (.*))?$")

# httpx hands out decoded bodies, so these no longer describe what we store.
DECODED_BODY_HEADERS = (b"content-encoding", b"transfer-encoding", b"content-length")


def _payload_headers(response: httpx.Response) -> tp.List[tp.Tuple[bytes, bytes]]:
    raw_headers = list(response.headers.raw)
    if "content-encoding" not in response.headers and "transfer-encoding" not in response.headers:
        return raw_headers

    headers = [(key, value) for key, value in raw_headers if key.lower() not in DECODED_BODY_HEADERS]
    headers.append((b"Content-Length", str(len(response.content)).encode("ascii")))
    return headers


def dumps_response(response: httpx.Response) -> str:
    """
    Dumps the HTTP response into its textual wire form.

    :param response: An HTTP response whose body has already been read
    :type response: httpx.Response
    :return: Status line, headers and body as a single string
    :rtype: str
    """
    lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}"]
    lines.extend(
        f"{key.decode(HEADERS_ENCODING)}: {value.decode(HEADERS_ENCODING)}" for key, value in _payload_headers(response)
    )
    head = CRLF.join(lines)
    return head + CRLF + CRLF + response.content.decode(HEADERS_ENCODING)


def loads_response(data: tp.Union[str, bytes]) -> httpx.Response:
    """
    Loads an HTTP response from its textual wire form.

    :param data: Output of :func:`dumps_response`
    :type data: tp.Union[str, bytes]
    :raises ParseError: When the data is not a well-formed HTTP response
    :return: An HTTP response with its body already read
    :rtype: httpx.Response
    """
    if isinstance(data, bytes):
        data = data.decode(HEADERS_ENCODING)

    head, separator, body = data.partition(CRLF + CRLF)
    if not separator:
        raise ParseError("Missing the end of the header section")

    status_line, *header_lines = head.split(CRLF)
    match = STATUS_LINE.match(status_line)
    if match is None:
        raise ParseError(f"Invalid status line: {status_line!r}")
    http_version, status_code, reason_phrase = match.groups()

    headers: tp.List[tp.Tuple[str, str]] = []
    for line in header_lines:
        key, colon, value = line.partition(":")
        if not colon or not key or key != key.strip():
            raise ParseError(f"Invalid header line: {line!r}")
        headers.append((key, value[1:] if value.startswith(" ") else value))

    try:
        response = httpx.Response(
            status_code=int(status_code),
            headers=[(key.encode(HEADERS_ENCODING), value.encode(HEADERS_ENCODING)) for key, value in headers],
            stream=httpx.ByteStream(body.encode(HEADERS_ENCODING)),
            extensions={
                "http_version": http_version.encode("ascii"),
                "reason_phrase": (reason_phrase or "").encode(HEADERS_ENCODING),
            },
        )
    except UnicodeEncodeError as exc:
        raise ParseError("Response contains characters outside of ISO-8859-1") from exc

    try:
        response.read()
    except httpx.DecodingError as exc:
        raise ParseError("Body does not match its Content-Encoding") from exc
    return response
