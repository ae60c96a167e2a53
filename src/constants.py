"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    TOOL_ERROR = 2
    ENVIRONMENT_ERROR = 3


class Tools(Enum):
    """External tools driven by the build.

    Args:
        Enum (string): Executable base names, without platform suffix.
    """

    AAPT = "aapt"
    ZIPALIGN = "zipalign"
    APKSIGNER = "apksigner"
    ADB = "adb"
    READELF = "readelf"
    KEYTOOL = "keytool"
    NDK_GDB = "ndk-gdb"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    MANIFEST_FILE = "AndroidManifest.xml"
    ANDROID_NAMESPACE = "http://schemas.android.com/apk/res/android"
    ENTRY_ACTIVITY = "android.app.NativeActivity"
    MAIN_ACTION = "android.intent.action.MAIN"
    LAUNCHER_CATEGORY = "android.intent.category.LAUNCHER"
    FULLSCREEN_THEME = "@android:style/Theme.DeviceDefault.NoActionBar.Fullscreen"
    DEFAULT_CONFIG_CHANGES = "orientation|keyboardHidden|screenSize"

    # c++_shared ships with the NDK for linking but is not part of the device image.
    RUNTIME_LIBRARY = "libc++_shared.so"
    SHARED_LIBRARY_SUFFIX = ".so"
    NEEDED_MARKER = "(NEEDED)"
    NEEDED_PREFIX = "Shared library: ["

    ZIP_ALIGNMENT = 4
    DEFAULT_MIN_SDK_VERSION = 23
    MAX_DEFAULT_TARGET_SDK_VERSION = 30
    DEFAULT_VERSION_VARIANT = 1
    DEFAULT_BUILD_DIR = "build/apk"
    DEFAULT_CONFIG_FILE = "apkbuild.yml"

    GDB_MAKEFILE = "Android.mk"

    DEBUG_KEYSTORE = "debug.keystore"
    DEBUG_KEYSTORE_PASSWORD = "android"
    DEBUG_KEY_ALIAS = "androiddebugkey"
    DEBUG_KEY_DNAME = "CN=Android Debug,O=Android,C=US"
    KEYSTORE_PASS_ENV = "APKBUILD_KEYSTORE_PASS"

    ENV_ANDROID_HOME = "ANDROID_HOME"
    ENV_ANDROID_SDK_ROOT = "ANDROID_SDK_ROOT"
    ENV_NDK_VARS = ["ANDROID_NDK_ROOT", "ANDROID_NDK_PATH", "ANDROID_NDK_HOME", "NDK_HOME"]
    ENV_JAVA_HOME = "JAVA_HOME"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
