import logging
import mimetypes

from .config import SiteConfig
from .models import Request, Response
from .resolver import resolve

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
PLAIN_TEXT = "text/plain; charset=utf-8"


def handle(method: str, path: str, site_config: SiteConfig) -> Response:
    if method != "GET":
        return Response(405, "Method Not Allowed", headers={"Allow": "GET", "Content-Type": PLAIN_TEXT})

    target = resolve(site_config.site, path)
    if target.found:
        return _serve(target.path)
    return _not_found(site_config.not_found_file)


def _serve(abs_path: str) -> Response:
    try:
        body = _read(abs_path)
    except OSError:
        logger.exception("Failed to read file '%s'", abs_path)
        return Response(500, "Internal Server Error", headers={"Content-Type": PLAIN_TEXT})

    logger.debug("Returning file '%s' with 200 OK", abs_path)
    return Response(200, "OK", headers={"Content-Type": _content_type(abs_path)}, body=body)


def _not_found(not_found_file: str) -> Response:
    try:
        body = _read(not_found_file)
    except OSError as e:
        logger.debug("Not found file '%s' unavailable: %s", not_found_file, e)
        return Response(404, "Not Found", headers={"Content-Type": PLAIN_TEXT})

    return Response(404, "Not Found", headers={"Content-Type": _content_type(not_found_file)}, body=body)


def _read(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _content_type(path: str) -> str:
    ctype, _ = mimetypes.guess_type(path)
    return ctype or DEFAULT_CONTENT_TYPE


class FileHandler:
    def __init__(self, site_config: SiteConfig) -> None:
        self.site_config = site_config

    def handle(self, req: Request) -> Response:
        return handle(req.method, req.path, self.site_config)
