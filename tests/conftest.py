import os

import pytest

from sitehost.config import SiteConfig


@pytest.fixture()
def site_root(tmp_path):
    """A small site tree with a secret file just outside of it."""
    root = tmp_path / "www"
    (root / "about").mkdir(parents=True)
    (root / "assets").mkdir()
    (root / "empty").mkdir()
    (root / "index.html").write_bytes(b"Hello")
    (root / "about" / "index.html").write_bytes(b"About us")
    (root / "assets" / "app.js").write_bytes(b"console.log(1);")
    (root / "assets" / "blob.unknownext").write_bytes(b"\x00\x01")
    (root / "not_found.html").write_bytes(b"Oops")
    (tmp_path / "secret.txt").write_bytes(b"top secret")
    return os.path.realpath(root)


@pytest.fixture()
def site_config(site_root):
    return SiteConfig(site=site_root, not_found_file=os.path.join(site_root, "not_found.html"))
