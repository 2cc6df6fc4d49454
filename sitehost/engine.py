import logging
import socket
from email.utils import formatdate
from typing import List, Optional
from urllib.parse import unquote

from . import __version__
from .models import Request, Response

logger = logging.getLogger(__name__)

PLAIN_TEXT = "text/plain; charset=utf-8"


class BadRequest(ValueError):
    pass


def parse_request(lines: List[bytes]) -> Request:
    """Build a Request from the head lines, without their line endings."""
    if not lines:
        raise BadRequest("empty request")

    parts = lines[0].decode("iso-8859-1").split()
    if len(parts) != 3:
        raise BadRequest("bad request line")
    method, target, version = parts
    if not version.startswith("HTTP/"):
        raise BadRequest("bad http version")

    headers = {}
    for line in lines[1:]:
        name, sep, value = line.decode("iso-8859-1").partition(":")
        if sep:
            headers[name.strip().lower()] = value.strip()

    path = unquote(target.partition("?")[0].partition("#")[0])
    return Request(method=method, target=target, path=path, version=version, headers=headers)


class HTTPEngine:
    """Answers one request per connection and closes it."""

    def __init__(self, config, request_handler, server_name=None) -> None:
        self.config = config
        self.request_handler = request_handler
        self.server_name = server_name or f"sitehost/{__version__}"

    def handle_connection(self, conn: socket.socket) -> None:
        with conn:
            try:
                resp = self._respond(conn)
            except TimeoutError:
                logger.debug("Timed out reading request head")
                return
            except Exception:
                logger.exception("Unhandled exception while processing request")
                resp = Response(500, "Internal Server Error", headers={"Content-Type": PLAIN_TEXT})

            if resp is None:
                return
            try:
                self.send(conn, resp)
            except OSError as e:
                logger.debug("Client went away before the response was sent: %s", e)

    def _respond(self, conn: socket.socket) -> Optional[Response]:
        try:
            lines = self.read_head(conn)
            if lines is None:
                return None
            req = parse_request(lines)
        except BadRequest as e:
            logger.debug("Bad request: %s", e)
            return Response(400, "Bad Request", headers={"Content-Type": PLAIN_TEXT})

        resp = self.request_handler.handle(req)
        logger.info('"%s %s %s" %d %d', req.method, req.target, req.version, resp.status, resp.body_size)
        return resp

    def read_head(self, conn: socket.socket) -> Optional[List[bytes]]:
        """
        Read the request line and headers up to the blank line.

        Returns None when the peer closes before sending anything. The body,
        if any, is left unread: every supported request is a GET.
        """
        limit = self.config.max_header_bytes
        lines = []
        size = 0
        with conn.makefile("rb") as rfile:
            while True:
                line = rfile.readline(limit - size + 1)
                if not line:
                    if size:
                        raise BadRequest("connection closed inside request head")
                    return None
                size += len(line)
                if size > limit:
                    raise BadRequest("request head exceeds %d bytes" % limit)
                if line in (b"\r\n", b"\n"):
                    return lines
                lines.append(line.rstrip(b"\r\n"))

    def send(self, conn: socket.socket, resp: Response) -> None:
        headers = {
            "Date": formatdate(usegmt=True),
            "Server": self.server_name,
            "Connection": "close",
            "Content-Length": str(resp.body_size),
        }
        headers.update(resp.headers)

        head = f"HTTP/1.1 {resp.status} {resp.reason}\r\n"
        head += "".join(f"{k}: {v}\r\n" for k, v in headers.items()) + "\r\n"
        conn.sendall(head.encode("iso-8859-1") + resp.body)
