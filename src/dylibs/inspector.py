"""Listing the shared libraries an ELF object needs at load time."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Protocol

from common.errors import ApkBuildError, ResolutionError
from constants import Constants
from toolchain.invoker import Command, ToolInvoker

logger = logging.getLogger(__name__)


class BinaryInspector(Protocol):
    """Anything able to report the NEEDED entries of a shared object."""

    def needed_libs(self, artifact: Path) -> List[str]:
        ...


def parse_needed_libs(text: str) -> List[str]:
    """Extract NEEDED library names from ``readelf -d`` output.

    Only lines carrying the ``(NEEDED)`` tag are considered; the name is the
    bracketed token after ``Shared library: [``. Lines without a complete
    token contribute nothing. Order of first appearance is kept.
    """
    needed: List[str] = []
    for line in text.splitlines():
        if Constants.NEEDED_MARKER not in line:
            continue
        _, sep, rest = line.partition(Constants.NEEDED_PREFIX)
        if not sep:
            continue
        name, close, _ = rest.partition("]")
        if not close or not name:
            continue
        if name not in needed:
            needed.append(name)
    return needed


class ReadelfInspector:
    """:class:`BinaryInspector` backed by the NDK ``readelf -d``."""

    def __init__(self, readelf: Path, invoker: Optional[ToolInvoker] = None):
        self.readelf = Path(readelf)
        self.invoker = invoker or ToolInvoker()

    def needed_libs(self, artifact: Path) -> List[str]:
        """Run readelf on ``artifact`` and parse its dynamic section.

        Raises:
            ResolutionError: If readelf is missing, fails, or prints output
                that is not text.
        """
        command = Command(str(self.readelf)).arg("-d", artifact)
        try:
            raw = self.invoker.output(command)
        except ApkBuildError as exc:
            raise ResolutionError(artifact, str(exc)) from exc
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ResolutionError(artifact, "readelf output is not valid UTF-8") from exc
        needed = parse_needed_libs(text)
        logger.debug("%s needs %s", artifact.name, ", ".join(needed) or "nothing")
        return needed
