"""Tests for the end-to-end builder on top of the fake SDK/NDK."""

import pytest

from apk.builder import ApkBuilder
from apk.config import BuildConfig
from common.errors import CommandFailed, ConfigError
from conftest import touch
from target import Target
from toolchain.invoker import ToolResult
from toolchain.ndk import Key


class NoDeps:
    def needed_libs(self, artifact):
        return []


@pytest.fixture
def build_config(tmp_path):
    lib = touch(tmp_path / "target" / "aarch64-linux-android" / "release" / "libhello.so")
    return BuildConfig(
        package="rust.example.hello",
        label="hello",
        build_dir=tmp_path / "out",
        targets=[Target.ARM64_V8A],
        libraries={Target.ARM64_V8A: lib},
        signing=Key(path=tmp_path / "release.keystore", password="pw"),
    )


class TestApkBuilder:
    """Stage ordering and configuration checks."""

    def test_build_runs_every_stage_in_order(self, build_config, ndk, fake_invoker):
        apk = ApkBuilder(build_config, ndk, inspector=NoDeps()).build()

        assert fake_invoker.names() == ["aapt", "aapt", "zipalign", "apksigner"]
        assert fake_invoker.commands[1].args[-1] == "lib/arm64-v8a/libhello.so"
        assert apk.path == build_config.build_dir / "hello.apk"
        manifest = (build_config.build_dir / "AndroidManifest.xml").read_text(encoding="utf-8")
        assert 'android:value="hello"' in manifest

    def test_run_installs_and_starts(self, build_config, ndk, fake_invoker):
        ApkBuilder(build_config, ndk, device_serial="abc", inspector=NoDeps()).run()

        assert fake_invoker.names()[-2:] == ["adb", "adb"]
        install, start = fake_invoker.commands[-2:]
        assert install.args[:3] == ["-s", "abc", "install"]
        assert "start" in start.args

    def test_every_target_embedded(self, build_config, ndk, fake_invoker, tmp_path):
        x86_lib = touch(tmp_path / "x86" / "libhello.so")
        build_config.targets.append(Target.X86)
        build_config.libraries[Target.X86] = x86_lib
        touch(ndk.sysroot_lib_dir(Target.ARM64_V8A).parent / "i686-linux-android" / "21" / "libc.so")

        ApkBuilder(build_config, ndk, inspector=NoDeps()).build()

        added = [c.args[-1] for c in fake_invoker.commands if c.args[:1] == ["add"]]
        assert added == ["lib/arm64-v8a/libhello.so", "lib/x86/libhello.so"]

    def test_runtime_libs_embedded(self, build_config, ndk, fake_invoker, tmp_path):
        touch(tmp_path / "prebuilt" / "arm64-v8a" / "libextra.so")
        build_config.runtime_libs = tmp_path / "prebuilt"

        ApkBuilder(build_config, ndk, inspector=NoDeps()).build()

        added = [c.args[-1] for c in fake_invoker.commands if c.args[:1] == ["add"]]
        assert added == ["lib/arm64-v8a/libhello.so", "lib/arm64-v8a/libextra.so"]

    def test_debug_key_used_without_signing(self, build_config, ndk, fake_invoker):
        keystore = touch(ndk.android_dir() / "debug.keystore")
        build_config.signing = None

        ApkBuilder(build_config, ndk, inspector=NoDeps()).build()

        sign = fake_invoker.commands[-1]
        assert sign.args[sign.args.index("--ks") + 1] == str(keystore)
        assert sign.env == {"APKBUILD_KEYSTORE_PASS": "android"}

    def test_no_targets(self, build_config, ndk):
        build_config.targets = []
        with pytest.raises(ConfigError):
            ApkBuilder(build_config, ndk).build()

    def test_target_without_library(self, build_config, ndk, fake_invoker):
        build_config.targets.append(Target.X86_64)
        with pytest.raises(ConfigError) as exc_info:
            ApkBuilder(build_config, ndk).build()
        assert "x86_64-linux-android" in str(exc_info.value)
        assert fake_invoker.commands == []

    def test_tool_failure_stops_build(self, build_config, ndk, fake_invoker):
        fake_invoker.failures["zipalign"] = 1
        with pytest.raises(CommandFailed):
            ApkBuilder(build_config, ndk, inspector=NoDeps()).build()
        assert "apksigner" not in fake_invoker.names()

    def test_gdb_attaches_after_launch(self, build_config, ndk, fake_invoker):
        def handler(command):
            if command.args[-2:] == ["getprop", "ro.product.cpu.abi"]:
                return ToolResult(0, b"arm64-v8a\n")
            return ToolResult(0)

        fake_invoker.handler = handler
        ApkBuilder(build_config, ndk, device_serial="abc", inspector=NoDeps()).gdb()

        assert fake_invoker.names()[-4:] == ["adb", "adb", "adb", "ndk-gdb"]
        gdb = fake_invoker.commands[-1]
        assert gdb.cwd == build_config.build_dir
        assert gdb.args[:2] == ["-s", "abc"]
        assert (build_config.build_dir / "jni" / "Android.mk").is_file()
