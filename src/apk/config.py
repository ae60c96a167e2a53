"""Build configuration loaded from a YAML (or JSON) file.

The file describes one package: its identity, the native libraries per target,
where to search for their dependencies, manifest options and signing. Paths
are resolved against the directory holding the file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from apk.manifest import (
    Activity,
    AndroidManifest,
    Application,
    Feature,
    MetaData,
    Permission,
    Sdk,
)
from common.errors import ConfigError, InvalidSemver, PathNotFound
from constants import Constants
from target import Target
from toolchain.ndk import Key
from versioning.version_code import VersionCode

logger = logging.getLogger(__name__)

_KNOWN_KEYS = {
    "package", "label", "version", "version_variant", "lib_name", "build_dir",
    "targets", "libraries", "search_paths", "assets", "resources", "runtime_libs",
    "min_sdk_version", "target_sdk_version", "debuggable", "fullscreen", "icon",
    "orientation", "launch_mode", "permissions", "features", "opengles_version",
    "application_metadata", "activity_metadata", "signing",
}


@dataclass
class BuildConfig:
    """Everything needed to build one APK."""

    package: str
    label: str
    version: str = "0.1.0"
    version_variant: int = Constants.DEFAULT_VERSION_VARIANT
    lib_name: Optional[str] = None
    build_dir: Path = Path(Constants.DEFAULT_BUILD_DIR)
    targets: List[Target] = field(default_factory=list)
    libraries: Dict[Target, Path] = field(default_factory=dict)
    search_paths: List[Path] = field(default_factory=list)
    assets: Optional[Path] = None
    resources: Optional[Path] = None
    runtime_libs: Optional[Path] = None
    min_sdk_version: int = Constants.DEFAULT_MIN_SDK_VERSION
    target_sdk_version: Optional[int] = None
    debuggable: bool = False
    fullscreen: bool = False
    icon: Optional[str] = None
    orientation: Optional[str] = None
    launch_mode: Optional[str] = None
    permissions: List[Permission] = field(default_factory=list)
    features: List[Feature] = field(default_factory=list)
    opengles_version: Optional[Tuple[int, int]] = None
    application_metadata: List[MetaData] = field(default_factory=list)
    activity_metadata: List[MetaData] = field(default_factory=list)
    signing: Optional[Key] = None

    def version_code(self) -> int:
        """Packed ``android:versionCode`` derived from ``version``."""
        return VersionCode.from_semver(self.version).to_code(self.version_variant)

    def native_lib_name(self) -> Optional[str]:
        """Name NativeActivity passes to ``System.loadLibrary``."""
        if self.lib_name:
            return self.lib_name
        for path in self.libraries.values():
            stem = path.name
            if stem.startswith("lib"):
                stem = stem[3:]
            if stem.endswith(Constants.SHARED_LIBRARY_SUFFIX):
                stem = stem[: -len(Constants.SHARED_LIBRARY_SUFFIX)]
            return stem
        return None

    def android_manifest(self, default_target_sdk: int) -> AndroidManifest:
        features = list(self.features)
        if self.opengles_version is not None:
            features.append(Feature(required=True, opengles_version=self.opengles_version))

        activity_meta = list(self.activity_metadata)
        lib_name = self.native_lib_name()
        if lib_name and not any(m.name == "android.app.lib_name" for m in activity_meta):
            activity_meta.append(MetaData("android.app.lib_name", lib_name))

        return AndroidManifest(
            package_name=self.package,
            version_code=self.version_code(),
            version_name=self.version,
            sdk=Sdk(
                min_sdk_version=self.min_sdk_version,
                target_sdk_version=self.target_sdk_version or default_target_sdk,
            ),
            features=features,
            permissions=list(self.permissions),
            application=Application(
                label=self.label,
                debuggable=self.debuggable,
                icon=self.icon,
                fullscreen=self.fullscreen,
                meta_datas=list(self.application_metadata),
                activity=Activity(
                    orientation=self.orientation,
                    launch_mode=self.launch_mode,
                    meta_datas=activity_meta,
                ),
            ),
        )


def load_build_config(config_path: str) -> BuildConfig:
    """Load and validate a build configuration file.

    Args:
        config_path: Path to a YAML/JSON file; an ``android:`` section is used
            when present, otherwise the whole document.

    Raises:
        PathNotFound: If the file does not exist.
        ConfigError: If the document is malformed or misses required keys.
    """
    path = Path(config_path)
    if not path.is_file():
        raise PathNotFound(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    section = data.get("android", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'android' section of {path} must be a mapping")
    logger.info("Loaded build config from: %s", path)
    return parse_build_config(section, path.parent)


def parse_build_config(data: Dict[str, Any], base_dir: Path) -> BuildConfig:
    """Build a :class:`BuildConfig` from an already-parsed mapping."""
    for key in data:
        if key not in _KNOWN_KEYS:
            logger.debug("Ignoring unknown config key: %s", key)

    base_dir = Path(base_dir)
    config = BuildConfig(
        package=_require_str(data, "package"),
        label=_require_str(data, "label"),
    )
    config.version = str(data.get("version", config.version))
    try:
        VersionCode.from_semver(config.version)
    except InvalidSemver as e:
        raise ConfigError(f"'version' is not a valid semver: {config.version!r}") from e
    config.version_variant = _opt_int(data, "version_variant", config.version_variant)
    if not 0 <= config.version_variant <= 0xFF:
        raise ConfigError("'version_variant' must be between 0 and 255")
    config.lib_name = _opt_str(data, "lib_name")
    config.build_dir = _path(base_dir, _opt_str(data, "build_dir") or Constants.DEFAULT_BUILD_DIR)

    config.targets = [Target.parse(str(t)) for t in _opt_list(data, "targets")]
    libraries = data.get("libraries") or {}
    if not isinstance(libraries, dict):
        raise ConfigError("'libraries' must map targets to library paths")
    config.libraries = {
        Target.parse(str(t)): _path(base_dir, _require_str(libraries, t))
        for t in libraries
    }
    if not config.targets:
        config.targets = list(config.libraries)
    search_paths = _opt_list(data, "search_paths")
    if not all(isinstance(p, str) and p for p in search_paths):
        raise ConfigError("every entry of 'search_paths' must be a non-empty string")
    config.search_paths = [_path(base_dir, p) for p in search_paths]

    for key in ("assets", "resources", "runtime_libs"):
        value = _opt_str(data, key)
        setattr(config, key, _path(base_dir, value) if value else None)

    config.min_sdk_version = _opt_int(data, "min_sdk_version", config.min_sdk_version)
    config.target_sdk_version = _opt_level(data, "target_sdk_version")
    config.debuggable = _opt_bool(data, "debuggable", False)
    config.fullscreen = _opt_bool(data, "fullscreen", False)
    config.icon = _opt_str(data, "icon")
    config.orientation = _opt_str(data, "orientation")
    config.launch_mode = _opt_str(data, "launch_mode")

    config.permissions = [
        Permission(name=_require_str(p, "name"), max_sdk_version=_opt_level(p, "max_sdk_version"))
        for p in _opt_mappings(data, "permissions")
    ]
    config.features = [
        Feature(name=_require_str(f, "name"), required=_opt_bool(f, "required", True))
        for f in _opt_mappings(data, "features")
    ]
    gles = data.get("opengles_version")
    if gles is not None:
        if not isinstance(gles, (list, tuple)) or len(gles) != 2:
            raise ConfigError("'opengles_version' must be a [major, minor] pair")
        major, minor = gles
        if any(isinstance(v, bool) or not isinstance(v, int) for v in (major, minor)):
            raise ConfigError("'opengles_version' entries must be integers")
        config.opengles_version = (major, minor)
    config.application_metadata = [
        MetaData(_require_str(m, "name"), str(m.get("value", "")))
        for m in _opt_mappings(data, "application_metadata")
    ]
    config.activity_metadata = [
        MetaData(_require_str(m, "name"), str(m.get("value", "")))
        for m in _opt_mappings(data, "activity_metadata")
    ]

    signing = data.get("signing")
    if signing is not None:
        if not isinstance(signing, dict):
            raise ConfigError("'signing' must be a mapping with 'path' and 'keystore_password'")
        config.signing = Key(
            path=_path(base_dir, _require_str(signing, "path")),
            password=_require_str(signing, "keystore_password"),
        )
    return config


def _path(base_dir: Path, value: Any) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else base_dir / path


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{key}' is required and must be a non-empty string")
    return value


def _opt_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string")
    return value


def _opt_int(data: Dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{key}' must be an integer")
    return value


def _opt_level(data: Dict[str, Any], key: str) -> Optional[int]:
    if data.get(key) is None:
        return None
    return _opt_int(data, key, 0)


def _opt_bool(data: Dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false")
    return value


def _opt_list(data: Dict[str, Any], key: str) -> List[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list")
    return value


def _opt_mappings(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    items = _opt_list(data, key)
    if not all(isinstance(i, dict) for i in items):
        raise ConfigError(f"every entry of '{key}' must be a mapping")
    return items
