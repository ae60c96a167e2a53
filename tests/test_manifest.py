"""Tests for AndroidManifest.xml rendering."""

import xml.etree.ElementTree as ET

from apk.manifest import (
    Activity,
    AndroidManifest,
    Application,
    Feature,
    MetaData,
    Permission,
    Sdk,
)

ANDROID = "{http://schemas.android.com/apk/res/android}"


def parse(manifest):
    return ET.fromstring(manifest.to_xml().split("\n", 1)[1])


def basic_manifest(**kwargs):
    return AndroidManifest(
        package_name="rust.example.hello",
        version_code=0x01000100,
        version_name="0.1.0",
        **kwargs,
    )


class TestManifestRendering:
    """Structure of the rendered document."""

    def test_xml_declaration(self):
        assert basic_manifest().to_xml().startswith('<?xml version="1.0" encoding="utf-8"?>\n')

    def test_root_attributes(self):
        root = parse(basic_manifest())
        assert root.tag == "manifest"
        assert root.get("package") == "rust.example.hello"
        assert root.get(f"{ANDROID}versionCode") == str(0x01000100)
        assert root.get(f"{ANDROID}versionName") == "0.1.0"

    def test_uses_sdk_omits_unset_levels(self):
        root = parse(basic_manifest(sdk=Sdk(min_sdk_version=21, target_sdk_version=30)))
        sdk = root.find("uses-sdk")
        assert sdk.get(f"{ANDROID}minSdkVersion") == "21"
        assert sdk.get(f"{ANDROID}targetSdkVersion") == "30"
        assert sdk.get(f"{ANDROID}maxSdkVersion") is None

    def test_native_activity_is_launcher(self):
        root = parse(basic_manifest(application=Application(label="hello")))
        app = root.find("application")
        assert app.get(f"{ANDROID}hasCode") == "false"
        assert app.get(f"{ANDROID}label") == "hello"
        activity = app.find("activity")
        assert activity.get(f"{ANDROID}name") == "android.app.NativeActivity"
        assert activity.get(f"{ANDROID}exported") == "true"
        intent_filter = activity.find("intent-filter")
        assert intent_filter.find("action").get(f"{ANDROID}name") == "android.intent.action.MAIN"
        assert intent_filter.find("category").get(f"{ANDROID}name") == "android.intent.category.LAUNCHER"

    def test_fullscreen_and_debuggable(self):
        root = parse(basic_manifest(application=Application(label="x", debuggable=True, fullscreen=True)))
        app = root.find("application")
        assert app.get(f"{ANDROID}debuggable") == "true"
        assert app.get(f"{ANDROID}theme") == "@android:style/Theme.DeviceDefault.NoActionBar.Fullscreen"

    def test_not_fullscreen_has_no_theme(self):
        app = parse(basic_manifest()).find("application")
        assert app.get(f"{ANDROID}theme") is None

    def test_features_and_permissions(self):
        root = parse(basic_manifest(
            features=[
                Feature(name="android.hardware.vulkan.level", required=False),
                Feature(required=True, opengles_version=(3, 2)),
            ],
            permissions=[Permission("android.permission.INTERNET"), Permission("android.permission.WRITE_EXTERNAL_STORAGE", 18)],
        ))
        features = root.findall("uses-feature")
        assert features[0].get(f"{ANDROID}name") == "android.hardware.vulkan.level"
        assert features[0].get(f"{ANDROID}required") == "false"
        assert features[1].get(f"{ANDROID}glEsVersion") == "0x00030002"
        permissions = root.findall("uses-permission")
        assert [p.get(f"{ANDROID}name") for p in permissions] == [
            "android.permission.INTERNET",
            "android.permission.WRITE_EXTERNAL_STORAGE",
        ]
        assert permissions[1].get(f"{ANDROID}maxSdkVersion") == "18"

    def test_meta_data(self):
        application = Application(
            label="x",
            meta_datas=[MetaData("com.samsung.android.vr.application.mode", "vr_only")],
            activity=Activity(
                orientation="landscape",
                meta_datas=[MetaData("android.app.lib_name", "hello")],
            ),
        )
        app = parse(basic_manifest(application=application)).find("application")
        assert app.find("meta-data").get(f"{ANDROID}value") == "vr_only"
        activity = app.find("activity")
        assert activity.get(f"{ANDROID}screenOrientation") == "landscape"
        meta = activity.find("meta-data")
        assert meta.get(f"{ANDROID}name") == "android.app.lib_name"
        assert meta.get(f"{ANDROID}value") == "hello"


class TestWriteTo:
    """Writing into the build directory."""

    def test_writes_file(self, tmp_path):
        path = basic_manifest().write_to(tmp_path)
        assert path == tmp_path / "AndroidManifest.xml"
        assert "rust.example.hello" in path.read_text(encoding="utf-8")
