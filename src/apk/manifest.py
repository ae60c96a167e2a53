"""AndroidManifest.xml model and serialization.

See https://developer.android.com/guide/topics/manifest/manifest-element
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from common.errors import ApkIoError
from constants import Constants

_XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'


def _android(name: str) -> str:
    return f"android:{name}"


def _set(elem: ET.Element, name: str, value) -> None:
    """Set an ``android:`` attribute, skipping unset values."""
    if value is None:
        return
    if isinstance(value, bool):
        value = "true" if value else "false"
    elem.set(_android(name), str(value))


@dataclass
class Sdk:
    min_sdk_version: int = Constants.DEFAULT_MIN_SDK_VERSION
    target_sdk_version: Optional[int] = None
    max_sdk_version: Optional[int] = None


@dataclass
class Feature:
    name: Optional[str] = None
    required: Optional[bool] = None
    opengles_version: Optional[Tuple[int, int]] = None


@dataclass
class Permission:
    name: str
    max_sdk_version: Optional[int] = None


@dataclass
class MetaData:
    name: str
    value: str


@dataclass
class IntentFilter:
    actions: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)


@dataclass
class Activity:
    name: str = Constants.ENTRY_ACTIVITY
    label: Optional[str] = None
    config_changes: Optional[str] = Constants.DEFAULT_CONFIG_CHANGES
    orientation: Optional[str] = None
    launch_mode: Optional[str] = None
    meta_datas: List[MetaData] = field(default_factory=list)
    intent_filters: List[IntentFilter] = field(
        default_factory=lambda: [
            IntentFilter(actions=[Constants.MAIN_ACTION], categories=[Constants.LAUNCHER_CATEGORY])
        ]
    )


@dataclass
class Application:
    label: str = ""
    debuggable: Optional[bool] = None
    has_code: bool = False
    icon: Optional[str] = None
    fullscreen: bool = False
    meta_datas: List[MetaData] = field(default_factory=list)
    activity: Activity = field(default_factory=Activity)


@dataclass
class AndroidManifest:
    """Everything rendered into the package's ``AndroidManifest.xml``."""

    package_name: str
    version_code: int
    version_name: str
    sdk: Sdk = field(default_factory=Sdk)
    features: List[Feature] = field(default_factory=list)
    permissions: List[Permission] = field(default_factory=list)
    application: Application = field(default_factory=Application)

    def to_element(self) -> ET.Element:
        root = ET.Element("manifest")
        root.set("xmlns:android", Constants.ANDROID_NAMESPACE)
        root.set("package", self.package_name)
        _set(root, "versionCode", self.version_code)
        _set(root, "versionName", self.version_name)

        sdk = ET.SubElement(root, "uses-sdk")
        _set(sdk, "minSdkVersion", self.sdk.min_sdk_version)
        _set(sdk, "targetSdkVersion", self.sdk.target_sdk_version)
        _set(sdk, "maxSdkVersion", self.sdk.max_sdk_version)

        for feature in self.features:
            elem = ET.SubElement(root, "uses-feature")
            _set(elem, "name", feature.name)
            _set(elem, "required", feature.required)
            if feature.opengles_version is not None:
                major, minor = feature.opengles_version
                _set(elem, "glEsVersion", f"0x{major:04}{minor:04}")

        for permission in self.permissions:
            elem = ET.SubElement(root, "uses-permission")
            _set(elem, "name", permission.name)
            _set(elem, "maxSdkVersion", permission.max_sdk_version)

        root.append(self._application_element())
        return root

    def _application_element(self) -> ET.Element:
        app = self.application
        elem = ET.Element("application")
        _set(elem, "debuggable", app.debuggable)
        _set(elem, "hasCode", app.has_code)
        _set(elem, "icon", app.icon)
        _set(elem, "label", app.label)
        if app.fullscreen:
            _set(elem, "theme", Constants.FULLSCREEN_THEME)
        _meta_datas(elem, app.meta_datas)

        activity = ET.SubElement(elem, "activity")
        act = app.activity
        _set(activity, "name", act.name)
        _set(activity, "label", act.label)
        _set(activity, "configChanges", act.config_changes)
        _set(activity, "screenOrientation", act.orientation)
        _set(activity, "launchMode", act.launch_mode)
        # Required for launchable activities from API level 31 on.
        _set(activity, "exported", True)
        _meta_datas(activity, act.meta_datas)
        for intent_filter in act.intent_filters:
            filter_elem = ET.SubElement(activity, "intent-filter")
            for action in intent_filter.actions:
                _set(ET.SubElement(filter_elem, "action"), "name", action)
            for category in intent_filter.categories:
                _set(ET.SubElement(filter_elem, "category"), "name", category)
        return elem

    def to_xml(self) -> str:
        elem = self.to_element()
        ET.indent(elem)
        return _XML_DECLARATION + ET.tostring(elem, encoding="unicode") + "\n"

    def write_to(self, directory: Path) -> Path:
        """Write ``AndroidManifest.xml`` into ``directory`` and return its path."""
        path = Path(directory) / Constants.MANIFEST_FILE
        try:
            path.write_text(self.to_xml(), encoding="utf-8")
        except OSError as exc:
            raise ApkIoError(f"Failed to write {path}: {exc}", path) from exc
        return path


def _meta_datas(parent: ET.Element, meta_datas: List[MetaData]) -> None:
    for meta in meta_datas:
        elem = ET.SubElement(parent, "meta-data")
        _set(elem, "name", meta.name)
        _set(elem, "value", meta.value)
