import socket

import pytest
import yaml

import httpd


@pytest.fixture(autouse=True)
def no_signal_handlers(monkeypatch):
    monkeypatch.setattr(httpd.signal, "signal", lambda *args: None)


def test_malformed_config_exits_with_error(tmp_path):
    config_path = tmp_path / "config.yml"
    config_path.write_text("site: [unclosed\n")

    assert httpd.main(["--config", str(config_path)]) == 1


def test_site_that_is_a_file_exits_with_error(tmp_path):
    site = tmp_path / "site.txt"
    site.write_text("not a directory")
    config_path = tmp_path / "config.yml"
    config_path.write_text(yaml.safe_dump({"site": str(site)}))

    assert httpd.main(["--config", str(config_path)]) == 1


def test_bind_failure_exits_with_error(tmp_path):
    site = tmp_path / "www"
    config_path = tmp_path / "config.yml"
    config_path.write_text(yaml.safe_dump({"site": str(site)}))

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen(1)
        port = taken.getsockname()[1]

        code = httpd.main(["--host", "127.0.0.1", "--port", str(port), "--config", str(config_path)])

    assert code == 1
    assert (site / "not_found.html").exists()
