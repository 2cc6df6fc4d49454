import os

import pytest

from sitehost.models import NOT_FOUND
from sitehost.resolver import resolve


@pytest.mark.parametrize("path", ["", "/", "//", "/./"])
def test_root_resolves_to_index(site_root, path):
    assert resolve(site_root, path).path == os.path.join(site_root, "index.html")


@pytest.mark.parametrize("path", ["/about", "/about/"])
def test_directory_rewritten_to_index(site_root, path):
    assert resolve(site_root, path).path == os.path.join(site_root, "about", "index.html")


def test_existing_file(site_root):
    target = resolve(site_root, "/assets/app.js")
    assert target.found
    assert target.path == os.path.join(site_root, "assets", "app.js")


def test_missing_file_is_not_found(site_root):
    assert resolve(site_root, "/missing.html") is NOT_FOUND


def test_directory_without_index_is_not_found(site_root):
    assert resolve(site_root, "/empty/") is NOT_FOUND


@pytest.mark.parametrize("path", [
    "/../secret.txt",
    "/../../etc/passwd",
    "/about/../../secret.txt",
    "/about/../index.html",
    "/..",
    "/index.html\x00.js",
])
def test_traversal_is_not_found(site_root, path):
    assert resolve(site_root, path) is NOT_FOUND


def test_symlink_escaping_root_is_not_found(site_root):
    outside = os.path.join(os.path.dirname(site_root), "secret.txt")
    link = os.path.join(site_root, "leak.txt")
    try:
        os.symlink(outside, link)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")

    assert os.path.isfile(link)
    assert resolve(site_root, "/leak.txt") is NOT_FOUND


def test_symlink_inside_root_is_followed(site_root):
    link = os.path.join(site_root, "home")
    try:
        os.symlink(os.path.join(site_root, "about"), link)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")

    assert resolve(site_root, "/home").path == os.path.join(site_root, "about", "index.html")


def test_resolution_is_repeatable(site_root):
    assert resolve(site_root, "/about") == resolve(site_root, "/about")
    assert resolve(site_root, "/nope") == resolve(site_root, "/nope")


def test_resolution_sees_live_filesystem(site_root):
    assert resolve(site_root, "/new.html") is NOT_FOUND
    with open(os.path.join(site_root, "new.html"), "wb") as f:
        f.write(b"fresh")
    assert resolve(site_root, "/new.html").found
