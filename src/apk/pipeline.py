"""Staged assembly of an APK.

The package moves through four stages, each represented by its own class that
only offers the operations legal at that point::

    CreatedApk --populate()--> UnalignedApk --align()--> UnsignedApk --sign()--> Apk

Every transition consumes the handle it is called on: the old handle raises
:class:`PipelineStateError` afterwards, so a stage can neither be repeated nor
skipped. Each step shells out to an SDK tool through the configured
:class:`ToolInvoker`; a non-zero exit raises :class:`CommandFailed` and leaves
the partial output on disk.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from apk.manifest import AndroidManifest
from common.errors import ApkIoError, PathNotFound, PipelineStateError
from constants import Constants, Tools
from dylibs.inspector import BinaryInspector, ReadelfInspector
from dylibs.resolver import resolve
from target import Target
from toolchain.invoker import Command, ToolInvoker
from toolchain.ndk import Key, Ndk

logger = logging.getLogger(__name__)


@dataclass
class ApkConfig:
    """Settings shared by all stages of one package build.

    One config owns ``build_dir``; two pipelines must not share it.
    """

    ndk: Ndk
    build_dir: Path
    package_label: str
    invoker: Optional[ToolInvoker] = None
    device_serial: Optional[str] = None

    def __post_init__(self):
        self.build_dir = Path(self.build_dir)
        if self.invoker is None:
            self.invoker = ToolInvoker()

    @property
    def unaligned_apk(self) -> Path:
        return self.build_dir / f"{self.package_label}-unaligned.apk"

    @property
    def apk(self) -> Path:
        return self.build_dir / f"{self.package_label}.apk"

    def build_tool(self, tool: Tools) -> Command:
        return self.ndk.build_tool(tool.value, cwd=self.build_dir)


class _Stage:
    """Bookkeeping for single-use pipeline handles."""

    def __init__(self, config: ApkConfig):
        self._config = config
        self._consumed = False

    @property
    def config(self) -> ApkConfig:
        return self._config

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _ensure_live(self, operation: str) -> None:
        if self._consumed:
            raise PipelineStateError(type(self).__name__, operation)

    def _consume(self, operation: str) -> None:
        self._ensure_live(operation)
        self._consumed = True


class CreatedApk(_Stage):
    """Configuration only; nothing has been written yet."""

    def populate(
        self,
        manifest: AndroidManifest,
        resources: Optional[Path] = None,
        assets: Optional[Path] = None,
    ) -> "UnalignedApk":
        """Write the manifest and create the base archive with ``aapt package``."""
        self._consume("populate")
        config = self._config
        try:
            config.build_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ApkIoError(f"Failed to create {config.build_dir}: {exc}", config.build_dir) from exc
        manifest.write_to(config.build_dir)

        target_sdk = manifest.sdk.target_sdk_version or config.ndk.default_target_platform()
        aapt = config.build_tool(Tools.AAPT).arg(
            "package", "-f",
            "-F", config.unaligned_apk,
            "-M", Constants.MANIFEST_FILE,
            "-I", config.ndk.android_jar(target_sdk),
        )
        if resources is not None:
            aapt.arg("-S", resources)
        if assets is not None:
            aapt.arg("-A", assets)
        config.invoker.check(aapt)
        return UnalignedApk(config, manifest)


class UnalignedApk(_Stage):
    """Base archive exists; native libraries can be added."""

    def __init__(self, config: ApkConfig, manifest: AndroidManifest):
        super().__init__(config)
        self.manifest = manifest
        self.entries: List[str] = []

    def add_lib(self, path: Path, target: Target) -> str:
        """Embed ``path`` at ``lib/<abi>/<file name>`` and return that entry name.

        An entry already in the archive is not added a second time.
        """
        self._ensure_live("add_lib")
        path = Path(path)
        if not path.exists():
            raise PathNotFound(path)
        config = self._config
        abi = target.android_abi
        entry = f"lib/{abi}/{path.name}"
        if entry in self.entries:
            logger.debug("%s is already embedded", entry)
            return entry
        staged = config.build_dir / "lib" / abi
        try:
            staged.mkdir(parents=True, exist_ok=True)
            shutil.copy(path, staged / path.name)
        except OSError as exc:
            raise ApkIoError(f"Failed to stage {path}: {exc}", path) from exc

        aapt = config.build_tool(Tools.AAPT).arg("add", config.unaligned_apk, entry)
        config.invoker.check(aapt)
        self.entries.append(entry)
        return entry

    def add_lib_recursively(
        self,
        lib: Path,
        target: Target,
        search_paths: Sequence[Path],
        inspector: Optional[BinaryInspector] = None,
    ) -> List[Path]:
        """Embed ``lib`` together with every shared library it transitively needs.

        Libraries shipped by the platform for the manifest's ``minSdkVersion``
        are left out, except the C++ runtime which is always bundled.

        Returns:
            The embedded artifacts, in resolution order.
        """
        self._ensure_live("add_lib_recursively")
        ndk = self._config.ndk
        if inspector is None:
            inspector = ReadelfInspector(ndk.readelf(target), self._config.invoker)
        platform_dirs = ndk.platform_lib_dirs(target, self.manifest.sdk.min_sdk_version)
        artifacts = resolve(lib, platform_dirs, list(search_paths), inspector)
        for artifact in artifacts:
            self.add_lib(artifact, target)
        return artifacts

    def add_runtime_libs(
        self,
        runtime_libs: Path,
        target: Target,
        search_paths: Sequence[Path],
        inspector: Optional[BinaryInspector] = None,
    ) -> List[Path]:
        """Embed every ``*.so`` under ``<runtime_libs>/<abi>/`` and its dependencies.

        A missing ABI directory is not an error: prebuilt libraries are often
        only provided for some targets.
        """
        self._ensure_live("add_runtime_libs")
        abi_dir = Path(runtime_libs) / target.android_abi
        if not abi_dir.is_dir():
            logger.debug("No runtime libraries for %s in %s", target.android_abi, runtime_libs)
            return []
        added: List[Path] = []
        search = [abi_dir] + list(search_paths)
        for lib in sorted(abi_dir.glob(f"*{Constants.SHARED_LIBRARY_SUFFIX}")):
            for artifact in self.add_lib_recursively(lib, target, search, inspector):
                if artifact not in added:
                    added.append(artifact)
        return added

    def align(self) -> "UnsignedApk":
        """Page-align the archive with ``zipalign`` so native code can be mmapped."""
        self._consume("align")
        config = self._config
        zipalign = config.build_tool(Tools.ZIPALIGN).arg(
            "-f", "-v", "-p", str(Constants.ZIP_ALIGNMENT),
            config.unaligned_apk, config.apk,
        )
        config.invoker.check(zipalign)
        return UnsignedApk(config, self.manifest)


class UnsignedApk(_Stage):
    """Aligned archive awaiting a signature."""

    def __init__(self, config: ApkConfig, manifest: AndroidManifest):
        super().__init__(config)
        self.manifest = manifest

    def sign(self, key: Key) -> "Apk":
        """Sign in place with ``apksigner``.

        The keystore password reaches apksigner through its environment only,
        never through the command line shown in logs and errors.
        """
        self._consume("sign")
        config = self._config
        apksigner = config.build_tool(Tools.APKSIGNER).arg(
            "sign",
            "--ks", key.path,
            "--ks-pass", f"env:{Constants.KEYSTORE_PASS_ENV}",
            config.apk,
        )
        apksigner.env[Constants.KEYSTORE_PASS_ENV] = key.password
        config.invoker.check(apksigner)
        return Apk(
            path=config.apk,
            package_name=self.manifest.package_name,
            ndk=config.ndk,
            invoker=config.invoker,
            device_serial=config.device_serial,
        )


class Apk:
    """A signed, distributable package.

    Installation and launch act on the finished file and may be repeated.
    """

    def __init__(
        self,
        path: Path,
        package_name: str,
        ndk: Ndk,
        invoker: Optional[ToolInvoker] = None,
        device_serial: Optional[str] = None,
    ):
        self.path = Path(path)
        self.package_name = package_name
        self.ndk = ndk
        self.invoker = invoker or ToolInvoker()
        self.device_serial = device_serial

    def install(self) -> None:
        """Install over any existing copy of the same package (``adb install -r``)."""
        adb = self.ndk.adb(self.device_serial).arg("install", "-r", self.path)
        self.invoker.check(adb)

    def start(self) -> None:
        """Launch the native activity on the device."""
        adb = self.ndk.adb(self.device_serial).arg(
            "shell", "am", "start",
            "-a", Constants.MAIN_ACTION,
            "-n", f"{self.package_name}/{Constants.ENTRY_ACTIVITY}",
        )
        self.invoker.check(adb)
