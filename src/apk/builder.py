"""End-to-end APK build driven by a :class:`BuildConfig`."""

from __future__ import annotations

import logging
from typing import Optional

from apk.config import BuildConfig
from apk.pipeline import Apk, ApkConfig, CreatedApk
from common.errors import ConfigError
from dylibs.inspector import BinaryInspector
from toolchain.invoker import ToolInvoker
from toolchain.ndk import Ndk

logger = logging.getLogger(__name__)


class ApkBuilder:
    """Builds one APK carrying native code for every configured target."""

    def __init__(
        self,
        config: BuildConfig,
        ndk: Ndk,
        invoker: Optional[ToolInvoker] = None,
        device_serial: Optional[str] = None,
        inspector: Optional[BinaryInspector] = None,
    ):
        self.config = config
        self.ndk = ndk
        self.invoker = invoker or ndk.invoker
        self.device_serial = device_serial
        self.inspector = inspector

    def build(self) -> Apk:
        """Populate, embed every target's closure, align and sign.

        Raises:
            ConfigError: If no target is configured or a target has no library.
        """
        config = self.config
        if not config.targets:
            raise ConfigError("No build targets configured")
        missing = [t.rust_triple for t in config.targets if t not in config.libraries]
        if missing:
            raise ConfigError(f"No library configured for: {', '.join(missing)}")

        apk_config = ApkConfig(
            ndk=self.ndk,
            build_dir=config.build_dir,
            package_label=config.label,
            invoker=self.invoker,
            device_serial=self.device_serial,
        )
        manifest = config.android_manifest(self.ndk.default_target_platform())
        logger.info(
            "Building %s %s (version code %#010x)",
            config.package, config.version, manifest.version_code,
        )
        unaligned = CreatedApk(apk_config).populate(manifest, config.resources, config.assets)

        for target in config.targets:
            lib = config.libraries[target]
            artifacts = unaligned.add_lib_recursively(lib, target, config.search_paths, self.inspector)
            logger.info(
                "Embedded %d libraries for %s", len(artifacts), target.android_abi
            )
            if config.runtime_libs is not None:
                unaligned.add_runtime_libs(
                    config.runtime_libs, target, config.search_paths, self.inspector
                )

        key = config.signing or self.ndk.debug_key()
        apk = unaligned.align().sign(key)
        logger.info("Signed package written to %s", apk.path)
        return apk

    def run(self) -> Apk:
        """Build, install over any existing copy, and launch."""
        apk = self.build()
        apk.install()
        apk.start()
        return apk

    def gdb(self) -> Apk:
        """Build, install and launch, then attach ``ndk-gdb`` from the build directory."""
        apk = self.run()
        self.ndk.ndk_gdb(self.config.build_dir, self.device_serial)
        return apk
