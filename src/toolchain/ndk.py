"""Discovery of the Android SDK/NDK installation and the tools inside it."""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from packaging.version import InvalidVersion, Version

from common.errors import (
    ApkIoError,
    BuildToolsNotFound,
    CommandNotFound,
    NdkNotFound,
    NoPlatformFound,
    PathNotFound,
    PlatformNotFound,
    SdkNotFound,
    UnsupportedHost,
    UnsupportedTarget,
)
from constants import Constants, Tools
from target import Target
from toolchain.invoker import Command, ToolInvoker

logger = logging.getLogger(__name__)

_WINDOWS = sys.platform.startswith("win")


def _bin(name: str) -> str:
    return f"{name}.exe" if _WINDOWS else name


def _bat(name: str) -> str:
    return f"{name}.bat" if _WINDOWS else name


def _cmd(name: str) -> str:
    return f"{name}.cmd" if _WINDOWS else name


@dataclass(frozen=True)
class Key:
    """A keystore used to sign the APK."""

    path: Path
    password: str = field(repr=False)


def _version_key(name: str):
    try:
        return (1, Version(name))
    except InvalidVersion:
        return (0, Version("0"))


def parse_platform_levels(platforms_mk: str) -> Dict[str, int]:
    """Parse ``NDK_MIN_PLATFORM_LEVEL``/``NDK_MAX_PLATFORM_LEVEL`` from platforms.mk."""
    levels: Dict[str, int] = {}
    for line in platforms_mk.splitlines():
        key, sep, value = line.partition(":=")
        if sep and value.strip().isdigit():
            levels[key.strip()] = int(value.strip())
    return levels


class Ndk:
    """A located SDK + NDK pair.

    Only path arithmetic and tool lookup live here; commands are returned
    unexecuted except for the few helpers that query a device or create the
    debug keystore.
    """

    def __init__(
        self,
        sdk_path: Path,
        ndk_path: Path,
        build_tools_version: str,
        platforms: List[int],
        invoker: Optional[ToolInvoker] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.sdk_path = Path(sdk_path)
        self.ndk_path = Path(ndk_path)
        self.build_tools_version = build_tools_version
        self.platforms = sorted(platforms, reverse=True)
        self.invoker = invoker or ToolInvoker()
        self.environ = dict(os.environ if environ is None else environ)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        invoker: Optional[ToolInvoker] = None,
    ) -> "Ndk":
        """Locate the SDK and NDK from the usual environment variables.

        Raises:
            SdkNotFound: If no SDK variable is set.
            NdkNotFound: If no NDK variable is set and there is no ``ndk-bundle``.
            BuildToolsNotFound: If ``build-tools`` has no versioned directory.
            NoPlatformFound: If no installed platform is usable with this NDK.
        """
        env = dict(os.environ if environ is None else environ)

        sdk = env.get(Constants.ENV_ANDROID_HOME)
        if sdk:
            logger.warning(
                "You use environment variable ANDROID_HOME that is deprecated. "
                "Please, remove it and use ANDROID_SDK_ROOT instead. Now ANDROID_HOME is used"
            )
        else:
            sdk = env.get(Constants.ENV_ANDROID_SDK_ROOT)
        if not sdk:
            raise SdkNotFound()
        sdk_path = Path(sdk)

        ndk = next((env[v] for v in Constants.ENV_NDK_VARS if env.get(v)), None)
        if ndk:
            ndk_path = Path(ndk)
        elif (sdk_path / "ndk-bundle").exists():
            ndk_path = sdk_path / "ndk-bundle"
        else:
            raise NdkNotFound()

        build_tools_dir = sdk_path / "build-tools"
        if not build_tools_dir.is_dir():
            raise PathNotFound(build_tools_dir)
        versions = [
            p.name for p in build_tools_dir.iterdir()
            if p.is_dir() and p.name[:1].isdigit()
        ]
        if not versions:
            raise BuildToolsNotFound()
        build_tools_version = max(versions, key=_version_key)

        source_properties = ndk_path / "source.properties"
        if not source_properties.is_file():
            raise PathNotFound(source_properties)

        platforms_mk = ndk_path / "build" / "core" / "platforms.mk"
        levels: Dict[str, int] = {}
        if platforms_mk.is_file():
            levels = parse_platform_levels(platforms_mk.read_text(encoding="utf-8"))
        min_level = levels.get("NDK_MIN_PLATFORM_LEVEL", 0)
        max_level = levels.get("NDK_MAX_PLATFORM_LEVEL", sys.maxsize)

        platforms_dir = sdk_path / "platforms"
        if not platforms_dir.is_dir():
            raise PathNotFound(platforms_dir)
        platforms = []
        for p in platforms_dir.iterdir():
            api = p.name[len("android-"):] if p.name.startswith("android-") else ""
            if p.is_dir() and api.isdigit() and min_level <= int(api) <= max_level:
                platforms.append(int(api))
        if not platforms:
            raise NoPlatformFound()

        logger.debug(
            "Using SDK %s (build-tools %s) and NDK %s",
            sdk_path, build_tools_version, ndk_path,
        )
        return cls(sdk_path, ndk_path, build_tools_version, platforms, invoker, env)

    def build_tool(self, tool: str, cwd: Optional[Path] = None) -> Command:
        """Return a command for an SDK build tool such as ``aapt``."""
        name = _bat(tool) if tool == Tools.APKSIGNER.value else _bin(tool)
        path = self.sdk_path / "build-tools" / self.build_tools_version / name
        if not path.exists():
            raise CommandNotFound(tool)
        return Command(str(path.resolve()), cwd=cwd)

    def platform_tool_path(self, tool: str) -> Path:
        path = self.sdk_path / "platform-tools" / _bin(tool)
        if not path.exists():
            raise CommandNotFound(tool)
        return path.resolve()

    def adb(self, device_serial: Optional[str] = None) -> Command:
        command = Command(str(self.platform_tool_path(Tools.ADB.value)))
        if device_serial:
            command.arg("-s", device_serial)
        return command

    def highest_supported_platform(self) -> int:
        return self.platforms[0]

    def default_target_platform(self) -> int:
        """Platform 30 as currently required by Google Play, or lower if unavailable."""
        return min(self.highest_supported_platform(), Constants.MAX_DEFAULT_TARGET_SDK_VERSION)

    def platform_dir(self, platform: int) -> Path:
        path = self.sdk_path / "platforms" / f"android-{platform}"
        if not path.exists():
            raise PlatformNotFound(platform)
        return path

    def android_jar(self, platform: int) -> Path:
        jar = self.platform_dir(platform) / "android.jar"
        if not jar.exists():
            raise PathNotFound(jar)
        return jar

    @staticmethod
    def host_tag() -> str:
        if sys.platform.startswith("linux"):
            return "linux"
        if sys.platform == "darwin":
            return "darwin"
        if _WINDOWS:
            return "windows"
        raise UnsupportedHost(sys.platform)

    def toolchain_dir(self) -> Path:
        host = self.host_tag()
        prebuilt = self.ndk_path / "toolchains" / "llvm" / "prebuilt"
        path = prebuilt / f"{host}-x86_64"
        if not path.exists():
            path = prebuilt / host
        if not path.exists():
            raise PathNotFound(path)
        return path

    def toolchain_bin(self, name: str, target: Target) -> Path:
        """Locate a binutils program, preferring the GNU flavor over ``llvm-*``.

        GNU binutils were removed in NDK r23; older NDKs ship both.
        """
        bin_dir = self.toolchain_dir() / "bin"
        gnu = bin_dir / _bin(f"{target.ndk_triple}-{name}")
        if gnu.exists():
            return gnu
        llvm = bin_dir / _bin(f"llvm-{name}")
        if llvm.exists():
            return llvm
        raise CommandNotFound(f"{gnu.name} or {llvm.name} in {bin_dir}")

    def readelf(self, target: Target) -> Path:
        return self.toolchain_bin(Tools.READELF.value, target)

    def sysroot_lib_dir(self, target: Target) -> Path:
        path = self.toolchain_dir() / "sysroot" / "usr" / "lib" / target.ndk_triple
        if not path.exists():
            raise PathNotFound(path)
        return path

    def sysroot_platform_lib_dir(self, target: Target, min_sdk_version: int) -> Path:
        """Sysroot libraries of the highest API level not above ``min_sdk_version``.

        Falls back to the lowest level above it when the NDK dropped support
        for old platforms.
        """
        lib_dir = self.sysroot_lib_dir(target)
        for level in range(min_sdk_version, 1, -1):
            path = lib_dir / str(level)
            if path.exists():
                return path
        for level in range(min_sdk_version + 1, 100):
            path = lib_dir / str(level)
            if path.exists():
                return path
        raise PlatformNotFound(min_sdk_version)

    def platform_lib_dirs(self, target: Target, min_sdk_version: int) -> List[Path]:
        """Directories whose libraries the device provides for ``target``."""
        return [
            self.sysroot_lib_dir(target),
            self.sysroot_platform_lib_dir(target, min_sdk_version),
        ]

    def android_dir(self) -> Path:
        path = Path(self.environ.get("HOME") or Path.home()) / ".android"
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ApkIoError(f"Failed to create {path}: {exc}", path) from exc
        return path

    def keytool(self) -> Command:
        found = shutil.which(_bin(Tools.KEYTOOL.value))
        if found:
            return Command(found)
        java_home = self.environ.get(Constants.ENV_JAVA_HOME)
        if java_home:
            path = Path(java_home) / "bin" / _bin(Tools.KEYTOOL.value)
            if path.exists():
                return Command(str(path))
        raise CommandNotFound(Tools.KEYTOOL.value)

    def debug_key(self) -> Key:
        """Return the debug keystore, generating it with keytool on first use."""
        path = self.android_dir() / Constants.DEBUG_KEYSTORE
        password = Constants.DEBUG_KEYSTORE_PASSWORD
        if not path.exists():
            logger.info("Generating debug keystore at %s", path)
            keytool = self.keytool().arg(
                "-genkey", "-v",
                "-keystore", path,
                "-storepass", password,
                "-alias", Constants.DEBUG_KEY_ALIAS,
                "-keypass", password,
                "-dname", Constants.DEBUG_KEY_DNAME,
                "-keyalg", "RSA",
                "-keysize", "2048",
                "-validity", "10000",
            )
            self.invoker.check(keytool)
        return Key(path=path, password=password)

    def detect_abi(self, device_serial: Optional[str] = None) -> Target:
        """Ask the connected device for its primary ABI."""
        command = self.adb(device_serial).arg("shell", "getprop", "ro.product.cpu.abi")
        stdout = self.invoker.output(command)
        try:
            abi = stdout.decode("utf-8").strip()
        except UnicodeDecodeError as exc:
            raise UnsupportedTarget(repr(stdout)) from exc
        return Target.from_android_abi(abi)

    def prebuilt_dir(self) -> Path:
        """Host prebuilts shipped with the NDK, home of ``ndk-gdb``."""
        path = self.ndk_path / "prebuilt" / f"{self.host_tag()}-x86_64"
        if not path.exists():
            raise PathNotFound(path)
        return path

    def ndk_gdb(self, launch_dir: Path, device_serial: Optional[str] = None) -> None:
        """Attach ``ndk-gdb`` to the app running on the device.

        ``ndk-gdb`` reads the ABI to debug from ``jni/Android.mk`` under
        ``launch_dir``, so that file is written for the device's ABI first.
        """
        abi = self.detect_abi(device_serial)
        jni_dir = Path(launch_dir) / "jni"
        makefile = jni_dir / Constants.GDB_MAKEFILE
        try:
            jni_dir.mkdir(parents=True, exist_ok=True)
            makefile.write_text(f'APP_ABI="{abi.android_abi}"\nTARGET_OUT=""\n', encoding="utf-8")
        except OSError as exc:
            raise ApkIoError(f"Failed to write {makefile}: {exc}", makefile) from exc

        ndk_gdb = Command(str(self.prebuilt_dir() / "bin" / _cmd(Tools.NDK_GDB.value)), cwd=Path(launch_dir))
        if device_serial:
            ndk_gdb.arg("-s", device_serial)
        ndk_gdb.arg("--adb", self.platform_tool_path(Tools.ADB.value))
        self.invoker.check(ndk_gdb)
