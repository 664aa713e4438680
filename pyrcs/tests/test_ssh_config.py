import pytest

from pyrcs.config.ssh_config import default_ssh_config_path, resolve_host
from pyrcs.core.exceptions import SSHConfigError
from pyrcs.core.models import Target

SSH_CONFIG = """
Host web
    HostName web.example.com
    User deploy
    Port 2222
    IdentityFile /keys/web_ed25519

Host web*
    User fallback
    Port 3333

Host db
    HostName 10.0.0.5
    Port notaport

Host *
    User everyone
"""


@pytest.fixture
def ssh_config(tmp_path):
    path = tmp_path / "ssh_config"
    path.write_text(SSH_CONFIG)
    return path


class TestResolveHost:
    """测试主机别名解析"""

    def test_full_entry(self, ssh_config):
        target = resolve_host("web", str(ssh_config))
        assert target == Target(
            host="web.example.com",
            user="deploy",
            port=2222,
            identity_file="/keys/web_ed25519",
        )

    def test_first_match_wins(self, ssh_config):
        target = resolve_host("web2", str(ssh_config))
        assert target.host == "web2"
        assert target.user == "fallback"
        assert target.port == 3333

    def test_invalid_port_falls_back(self, ssh_config):
        target = resolve_host("db", str(ssh_config))
        assert target.host == "10.0.0.5"
        assert target.port == 22

    def test_unknown_alias(self, ssh_config):
        target = resolve_host("other", str(ssh_config))
        assert target.host == "other"
        assert target.port == 22
        assert target.user == "everyone"
        assert target.identity_file == ""

    def test_missing_file(self, tmp_path):
        target = resolve_host("box", str(tmp_path / "missing"))
        assert target == Target(host="box", port=22)

    def test_default_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_ssh_config_path() == tmp_path / ".ssh" / "config"
        assert resolve_host("box") == Target(host="box")

    def test_default_path_is_read(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / ".ssh").mkdir()
        (tmp_path / ".ssh" / "config").write_text("Host box\n  HostName box.lan\n")
        assert resolve_host("box").host == "box.lan"

    def test_identity_file_tilde_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        path = tmp_path / "ssh_config"
        path.write_text("Host k\n  IdentityFile ~/.ssh/id_k\n")
        assert resolve_host("k", str(path)).identity_file == str(tmp_path / ".ssh" / "id_k")

    def test_parse_error(self, tmp_path):
        path = tmp_path / "ssh_config"
        path.write_text("Host bad\n  HostName\n")
        with pytest.raises(SSHConfigError):
            resolve_host("bad", str(path))
