"""apkbuild - Package native shared libraries into a signed Android APK

    Returns:
        int: Exit code
"""
import logging
import sys
from pathlib import Path

from apk.builder import ApkBuilder
from apk.config import BuildConfig, load_build_config
from args import parse_args
from common.errors import (
    ApkBuildError,
    BuildToolsNotFound,
    CommandFailed,
    CommandNotFound,
    ConfigError,
    NdkNotFound,
    NoPlatformFound,
    PlatformNotFound,
    SdkNotFound,
    UnsupportedHost,
)
from common.logging_utils import configure_logging
from constants import ExitCodes
from target import Target
from toolchain.ndk import Ndk

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def exit_code_for(error):
    """Maps a build error to the process exit code.

    Args:
        error (ApkBuildError): The error that stopped the build.

    Returns:
        int: Exit code
    """
    if isinstance(error, (CommandFailed, CommandNotFound)):
        return ExitCodes.TOOL_ERROR.value
    if isinstance(error, (SdkNotFound, NdkNotFound, BuildToolsNotFound,
                          NoPlatformFound, PlatformNotFound, UnsupportedHost)):
        return ExitCodes.ENVIRONMENT_ERROR.value
    return ExitCodes.FILE_ERROR.value


def apply_overrides(config: BuildConfig, args) -> BuildConfig:
    """Applies command line overrides on top of the loaded configuration.

    Args:
        config (BuildConfig): Configuration loaded from file.
        args (argparse.Namespace): Parsed arguments.

    Returns:
        BuildConfig: The same config, updated in place.
    """
    targets = [Target.parse(t) for t in getattr(args, "TARGETS", [])]
    if targets:
        config.targets = targets
    lib = getattr(args, "LIB", None)
    if lib:
        if len(config.targets) != 1:
            raise ConfigError("--lib requires exactly one target")
        config.libraries[config.targets[0]] = Path(lib)
    config.search_paths.extend(Path(p) for p in getattr(args, "SEARCH_PATHS", []))
    return config


def run(args):
    """Executes the requested action.

    Args:
        args (argparse.Namespace): Parsed arguments.
    """
    if args.action == "version":
        print(f"apkbuild {__version__}")
        return

    config = apply_overrides(load_build_config(args.CONFIG), args)
    ndk = Ndk.from_env()
    builder = ApkBuilder(config, ndk, device_serial=getattr(args, "DEVICE", None))
    if args.action == "run":
        builder.run()
    elif args.action == "gdb":
        builder.gdb()
    else:
        builder.build()


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE, args.QUIET)
    try:
        run(args)
    except ApkBuildError as e:
        logger.error("%s", e)
        sys.exit(exit_code_for(e))
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
