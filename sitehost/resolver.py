import logging
import os

from .models import NOT_FOUND, ResolvedTarget

logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"


def resolve(site_root: str, request_path: str) -> ResolvedTarget:
    """
    Map a decoded request path onto an existing file under ``site_root``.

    Directories are rewritten to their ``index.html``. Anything that does
    not end on a regular file inside the canonical site root, including
    traversal attempts and symlinks pointing outside it, resolves to
    NOT_FOUND. The filesystem is consulted on every call.
    """
    root_real = os.path.realpath(site_root)

    segments = _split(request_path)
    if segments is None:
        logger.debug("[404] Rejected request path '%s'", request_path)
        return NOT_FOUND

    candidate = _contained(root_real, os.path.join(root_real, *segments))
    if candidate is None:
        logger.debug("[404] Request path '%s' escaped site directory", request_path)
        return NOT_FOUND

    if os.path.isdir(candidate):
        candidate = _contained(root_real, os.path.join(candidate, INDEX_FILE))
        if candidate is None:
            logger.debug("[404] Index of '%s' escaped site directory", request_path)
            return NOT_FOUND

    if not os.path.isfile(candidate):
        logger.debug("[404] Target file path '%s' not found", candidate)
        return NOT_FOUND

    return ResolvedTarget(candidate)


def _split(request_path: str) -> list[str] | None:
    if "\x00" in request_path:
        return None

    rel = request_path
    for sep in (os.sep, os.altsep):
        if sep and sep != "/":
            rel = rel.replace(sep, "/")

    segments = [s for s in rel.split("/") if s not in ("", ".")]
    if ".." in segments:
        return None
    return segments


def _contained(root_real: str, path: str) -> str | None:
    real = os.path.realpath(path)
    root_prefix = root_real.rstrip(os.sep) + os.sep
    if real != root_real and not real.startswith(root_prefix):
        return None
    return real
