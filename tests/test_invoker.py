"""Tests for running real processes through the tool invoker."""

import sys

import pytest

from common.errors import CommandFailed, CommandNotFound
from common.logging_utils import Timer, extra_context
from toolchain.invoker import Command, ToolInvoker


def python(*code):
    return Command(sys.executable).arg("-c", *code)


class TestCommand:
    """Command construction."""

    def test_arg_chains_and_stringifies(self, tmp_path):
        command = Command("/sdk/aapt").arg("add", tmp_path / "a.apk").arg(4)
        assert command.argv == ["/sdk/aapt", "add", str(tmp_path / "a.apk"), "4"]
        assert command.name == "aapt"
        assert str(command) == f"/sdk/aapt add {tmp_path / 'a.apk'} 4"

    def test_env_not_displayed(self):
        command = Command("apksigner").arg("sign")
        command.env["SECRET"] = "value"
        assert "value" not in command.display()


class TestToolInvoker:
    """subprocess backed execution."""

    def test_check_success(self):
        ToolInvoker().check(python("import sys; sys.exit(0)"))

    def test_check_failure_carries_command_line(self):
        command = python("import sys; sys.exit(3)")
        with pytest.raises(CommandFailed) as exc_info:
            ToolInvoker().check(command)
        assert exc_info.value.returncode == 3
        assert exc_info.value.argv == command.argv
        assert "non-zero exit code (3)" in str(exc_info.value)

    def test_output_captures_stdout(self):
        assert ToolInvoker().output(python("print('hello')")).strip() == b"hello"

    def test_env_and_cwd(self, tmp_path):
        command = python("import os; print(os.environ['APK_TEST_VAR'], os.getcwd())")
        command.env["APK_TEST_VAR"] = "set"
        command.cwd = tmp_path
        out = ToolInvoker().output(command).decode().split()
        assert out[0] == "set"
        assert out[1] == str(tmp_path.resolve())

    def test_missing_program(self, tmp_path):
        with pytest.raises(CommandNotFound):
            ToolInvoker().run(Command(str(tmp_path / "no-such-tool")))


class TestLoggingUtils:
    """Small logging helpers."""

    def test_extra_context_drops_none(self):
        assert extra_context(tool="aapt", returncode=None) == {"tool": "aapt"}

    def test_timer(self):
        with Timer() as t:
            pass
        assert t.duration_ms() >= 0
