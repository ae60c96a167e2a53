"""Error types raised while assembling an APK.

Every failure in the build is fatal to the current operation and propagates to
the caller unchanged. The only recoverable condition, a transitive shared
library that cannot be found, is reported as a log warning instead.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Sequence


class ApkBuildError(Exception):
    """Base class for all build errors.

    Attributes:
        context: Dictionary with error details for debugging, such as the
                 offending path or command.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class PathNotFound(ApkBuildError):
    """An expected input file or directory does not exist."""

    def __init__(self, path: Path):
        super().__init__(f"Path {str(path)!r} doesn't exist.", {"path": str(path)})
        self.path = Path(path)


class CommandNotFound(ApkBuildError):
    """A required tool binary could not be located."""

    def __init__(self, tool: str):
        super().__init__(f"Command {tool} not found.", {"tool": tool})
        self.tool = tool


class CommandFailed(ApkBuildError):
    """An external tool exited with a non-zero status.

    The message carries the exact command line that was run so operators can
    reproduce it by hand.
    """

    def __init__(self, argv: Sequence[str], returncode: int):
        self.argv = [str(a) for a in argv]
        self.returncode = returncode
        super().__init__(
            f"Command '{' '.join(self.argv)}' had a non-zero exit code ({returncode}).",
            {"argv": self.argv, "returncode": returncode},
        )


class ApkIoError(ApkBuildError):
    """Filesystem or process I/O failure."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message, {"path": str(path) if path is not None else None})
        self.path = path


class UnsupportedTarget(ApkBuildError):
    """A triple or ABI string is not one of the supported targets."""

    def __init__(self, value: str):
        super().__init__(f"Target {value!r} is not supported.", {"value": value})
        self.value = value


class UnsupportedHost(ApkBuildError):
    """The host OS has no prebuilt NDK toolchain."""

    def __init__(self, host: str):
        super().__init__(f"Host {host} is not supported.", {"host": host})
        self.host = host


class InvalidSemver(ApkBuildError):
    """A version string does not have three numeric components."""

    def __init__(self, value: str):
        super().__init__(f"Invalid semver {value!r}", {"value": value})
        self.value = value


class ResolutionError(ApkBuildError):
    """Inspecting an artifact failed while computing its dependency closure."""

    def __init__(self, artifact: Path, reason: str):
        super().__init__(
            f"Failed to list needed libraries of {str(artifact)!r}: {reason}",
            {"artifact": str(artifact)},
        )
        self.artifact = Path(artifact)


class SdkNotFound(ApkBuildError):
    """No Android SDK location is configured."""

    def __init__(self):
        super().__init__(
            "Please set the path to the Android SDK with the $ANDROID_SDK_ROOT "
            "environment variable."
        )


class NdkNotFound(ApkBuildError):
    """No Android NDK location is configured."""

    def __init__(self):
        super().__init__(
            "Please set the path to the Android NDK with either the $ANDROID_NDK_ROOT, "
            "$ANDROID_NDK_HOME or $NDK_HOME environment variable."
        )


class BuildToolsNotFound(ApkBuildError):
    """The SDK has no build-tools installed."""

    def __init__(self):
        super().__init__("Android SDK has no build tools.")


class NoPlatformFound(ApkBuildError):
    """The SDK has no platform supported by the NDK."""

    def __init__(self):
        super().__init__("Android SDK has no platforms installed.")


class PlatformNotFound(ApkBuildError):
    """A specific API level is not installed."""

    def __init__(self, level: int):
        super().__init__(f"Platform {level} is not installed.", {"level": level})
        self.level = level


class ConfigError(ApkBuildError):
    """The build configuration file is missing fields or has wrong types."""


class PipelineStateError(ApkBuildError):
    """A pipeline handle was used after it moved on to the next stage."""

    def __init__(self, stage: str, operation: str):
        super().__init__(
            f"{stage} was already consumed; {operation}() is no longer allowed.",
            {"stage": stage, "operation": operation},
        )
