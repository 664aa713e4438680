import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from pyrcs.cli import DURATION, _execute_async, cli
from pyrcs.core.exceptions import NoAuthMethodError
from pyrcs.core.models import AuthMethod, Options


@pytest.fixture
def home(tmp_path, monkeypatch):
    """隔离 HOME、工作目录与 ssh-agent"""
    home_dir = tmp_path / "home"
    (home_dir / ".ssh").mkdir(parents=True)
    (home_dir / ".ssh" / "known_hosts").write_text("")
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.delenv("SSH_AUTH_SOCK", raising=False)
    monkeypatch.chdir(work)
    return home_dir


def invoke(args):
    runner = CliRunner()
    return runner.invoke(cli, args, prog_name="pyrcs")


class TestCommandLine:
    """测试命令行解析"""

    def test_help(self):
        result = invoke(["--help"])
        assert result.exit_code == 0
        assert "--ssh-config" in result.output

    def test_command_required(self):
        result = invoke(["-h", "web"])
        assert result.exit_code == 2
        assert "command is required" in result.output

    def test_options_collected(self):
        with patch("pyrcs.cli._execute_async", AsyncMock(return_value=0)) as execute:
            result = invoke(
                [
                    "-h", "web", "--dir", "/srv", "--shell", "--timeout", "1m30s",
                    "--env", "A=1", "--env", "B=2", "--", "ls", "-la",
                ]
            )

        assert result.exit_code == 0
        opts = execute.call_args.args[0]
        assert opts.host == "web"
        assert opts.dir == "/srv"
        assert opts.shell is True
        assert opts.timeout == 90.0
        assert opts.env == ["A=1", "B=2"]
        assert opts.command == ["ls", "-la"]

    def test_command_starts_at_first_positional(self):
        with patch("pyrcs.cli._execute_async", AsyncMock(return_value=0)) as execute:
            result = invoke(["--host", "web", "grep", "-r", "--dir", "x"])

        assert result.exit_code == 0
        opts = execute.call_args.args[0]
        assert opts.dir == ""
        assert opts.command == ["grep", "-r", "--dir", "x"]

    def test_exit_code_propagated(self):
        with patch("pyrcs.cli._execute_async", AsyncMock(return_value=42)):
            result = invoke(["-h", "web", "false"])
        assert result.exit_code == 42

    def test_fatal_error_printed(self):
        with patch("pyrcs.cli._execute_async", AsyncMock(side_effect=NoAuthMethodError())):
            result = invoke(["-h", "web", "ls"])
        assert result.exit_code == 1
        assert "no usable authentication method" in result.output

    def test_invalid_timeout(self):
        result = invoke(["--timeout", "soon", "-h", "web", "ls"])
        assert result.exit_code == 2

    def test_duration_param(self):
        assert DURATION.convert("2s", None, None) == 2.0
        assert DURATION.convert(0.0, None, None) == 0.0


class TestExecutePipeline:
    """测试从配置合并到执行的整体流程"""

    def test_host_required(self, home):
        result = invoke(["ls"])
        assert result.exit_code == 1
        assert "host is required" in result.output

    def test_auth_exhaustion(self, home):
        result = invoke(["-h", "web", "ls"])
        assert result.exit_code == 1
        assert "no usable authentication method" in result.output

    def test_pipeline(self, home, tmp_path):
        (home / ".ssh" / "config").write_text(
            "Host web\n  HostName web.example.com\n  User deploy\n  Port 2200\n"
        )
        (tmp_path / "work" / "project.toml").write_text(
            '[ssh]\nhost = "web"\n\n[exec]\ndir = "/app"\n\n[env]\nA = "1"\n'
        )
        method = AuthMethod(source="key:test", key=MagicMock())
        run = AsyncMock(return_value=3)

        with patch("pyrcs.cli.build_auth_methods", AsyncMock(return_value=[method])), patch(
            "pyrcs.cli.RemoteExecutor.run", run
        ):
            result = invoke(["--env", "B=2", "ls"])

        assert result.exit_code == 3
        target, methods, command, opts = run.call_args.args
        assert target.host == "web.example.com"
        assert target.user == "deploy"
        assert target.port == 2200
        assert methods == [method]
        assert command == "export A=1 && export B=2 && cd /app && ls"
        assert opts.dir == "/app"

    def test_missing_known_hosts(self, home):
        (home / ".ssh" / "known_hosts").unlink()
        method = AuthMethod(source="key:test", key=MagicMock())
        with patch("pyrcs.cli.build_auth_methods", AsyncMock(return_value=[method])):
            result = invoke(["-h", "web", "ls"])
        assert result.exit_code == 1
        assert "known hosts" in result.output

    def test_log_sink_opened(self, home, tmp_path):
        log_path = tmp_path / "out" / "run.log"
        method = AuthMethod(source="key:test", key=MagicMock())
        opts = Options(host="web", log_path=str(log_path), command=["ls"])

        with patch("pyrcs.cli.build_auth_methods", AsyncMock(return_value=[method])), patch(
            "pyrcs.cli.RemoteExecutor.run", AsyncMock(return_value=0)
        ):
            assert asyncio.run(_execute_async(opts)) == 0
        assert log_path.exists()
