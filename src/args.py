"""Argument parsing functionality for apkbuild."""

import argparse

from constants import Constants


def _add_build_arguments(parser):
    parser.add_argument("-t", "--target",
                        dest="TARGETS",
                        help="Build only for this target (rust triple, ABI name or NDK triple). Can be repeated.",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("--lib",
                        dest="LIB",
                        help="Native library to package; overrides the configured one for the selected target.",
                        action="store",
                        type=str)
    parser.add_argument("-L", "--search-path",
                        dest="SEARCH_PATHS",
                        help="Extra directory searched for needed shared libraries. Can be repeated.",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("-d", "--device",
                        dest="DEVICE",
                        help="Use device with the given serial (see `adb devices`).",
                        action="store",
                        type=str)


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="apkbuild",
        description=(
            "apkbuild - Package native shared libraries into a signed Android APK"
        ),
        add_help=True,
    )

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to build configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str,
                        default=Constants.DEFAULT_CONFIG_FILE)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Only print errors to the console.",
                        action="store_true")

    subparsers = parser.add_subparsers(dest="action", required=True)

    p_build = subparsers.add_parser("build", aliases=["b"], help="Build and sign the APK.")
    _add_build_arguments(p_build)

    p_run = subparsers.add_parser("run", aliases=["r"], help="Build, install and launch the APK on a device.")
    _add_build_arguments(p_run)

    p_gdb = subparsers.add_parser("gdb", help="Build, run and attach ndk-gdb to the app on a device.")
    _add_build_arguments(p_gdb)

    subparsers.add_parser("version", help="Print the version of apkbuild.")

    ns = parser.parse_args(argv)
    ns.action = {"b": "build", "r": "run"}.get(ns.action, ns.action)
    return ns
