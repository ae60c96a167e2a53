"""Shared fixtures: a recording tool invoker and a fake SDK/NDK tree."""

from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from toolchain.invoker import Command, ToolInvoker, ToolResult
from toolchain.ndk import Ndk


class FakeInvoker(ToolInvoker):
    """Records every command instead of running it.

    ``failures`` maps a tool base name to the exit code it should return;
    ``handler`` can compute a full result for a command.
    """

    def __init__(self, handler: Optional[Callable[[Command], ToolResult]] = None):
        self.commands: List[Command] = []
        self.failures: Dict[str, int] = {}
        self.handler = handler

    def run(self, command, capture=False):
        self.commands.append(command)
        if command.name in self.failures:
            return ToolResult(returncode=self.failures[command.name])
        if self.handler is not None:
            return self.handler(command)
        return ToolResult(returncode=0)

    def names(self):
        return [c.name for c in self.commands]


def touch(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def readelf_output(*needed: str) -> bytes:
    """Render readelf -d style output for the given NEEDED entries."""
    lines = [
        "",
        "Dynamic section at offset 0x1d48 contains 27 entries:",
        "  Tag        Type                         Name/Value",
    ]
    for name in needed:
        lines.append(f" 0x0000000000000001 (NEEDED)             Shared library: [{name}]")
    lines.append(" 0x000000000000000e (SONAME)             Library soname: [libself.so]")
    return "\n".join(lines).encode("utf-8")


@pytest.fixture
def fake_invoker():
    return FakeInvoker()


@pytest.fixture
def android_home(tmp_path):
    """Create a minimal SDK + NDK layout and return the environment pointing at it."""
    sdk = tmp_path / "sdk"
    ndk = tmp_path / "ndk"
    for version in ("9.0.0", "30.0.3"):
        tools = sdk / "build-tools" / version
        for tool in ("aapt", "zipalign", "apksigner"):
            touch(tools / tool)
    touch(sdk / "build-tools" / "not-a-version" / "aapt")
    for level in (29, 30, 33):
        touch(sdk / "platforms" / f"android-{level}" / "android.jar")
    touch(sdk / "platform-tools" / "adb")

    touch(ndk / "source.properties", "Pkg.Desc = Android NDK\nPkg.Revision = 21.4.7075529\n")
    touch(
        ndk / "build" / "core" / "platforms.mk",
        "NDK_MIN_PLATFORM_LEVEL := 16\nNDK_MAX_PLATFORM_LEVEL := 30\n",
    )
    prebuilt = ndk / "toolchains" / "llvm" / "prebuilt" / "linux-x86_64"
    touch(prebuilt / "bin" / "llvm-readelf")
    touch(ndk / "prebuilt" / "linux-x86_64" / "bin" / "ndk-gdb")
    lib_dir = prebuilt / "sysroot" / "usr" / "lib" / "aarch64-linux-android"
    touch(lib_dir / "libc++_shared.so")
    touch(lib_dir / "libc++_static.a")
    for name in ("libc.so", "libm.so", "liblog.so", "libandroid.so"):
        touch(lib_dir / "21" / name)
        touch(lib_dir / "24" / name)

    return {
        "ANDROID_SDK_ROOT": str(sdk),
        "ANDROID_NDK_ROOT": str(ndk),
        "HOME": str(tmp_path / "home"),
    }


@pytest.fixture
def ndk(android_home, fake_invoker, monkeypatch):
    monkeypatch.setattr(Ndk, "host_tag", staticmethod(lambda: "linux"))
    return Ndk.from_env(environ=android_home, invoker=fake_invoker)
