"""Transitive closure of the shared libraries an artifact must bundle.

Starting from a root shared object, every NEEDED library that the device does
not already provide is located in the search directories and queued for
inspection in turn. The result is the list of files to embed under
``lib/<abi>/`` in the APK.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

from common.errors import ApkBuildError, ApkIoError, PathNotFound, ResolutionError
from constants import Constants
from dylibs.inspector import BinaryInspector

logger = logging.getLogger(__name__)


def list_libs(directory: Path) -> Set[str]:
    """Return the names of all ``*.so`` entries of ``directory`` that are not directories.

    Raises:
        PathNotFound: If ``directory`` does not exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise PathNotFound(directory)
    libs: Set[str] = set()
    try:
        for entry in directory.iterdir():
            if entry.name.endswith(Constants.SHARED_LIBRARY_SUFFIX) and not entry.is_dir():
                libs.add(entry.name)
    except OSError as exc:
        raise ApkIoError(f"Failed to list {directory}: {exc}", directory) from exc
    return libs


def find_library_path(directories: Iterable[Path], name: str) -> Optional[Path]:
    """Locate ``name`` in the first directory that contains it.

    The directory is canonicalized but the file name is kept as requested, so a
    versioned symlink target never replaces the soname the loader looks for.
    """
    for directory in directories:
        candidate = Path(directory) / name
        if candidate.exists():
            return Path(os.path.realpath(directory)) / name
    return None


def provided_libs(platform_dirs: Iterable[Path]) -> Set[str]:
    """Library names the device image is guaranteed to ship.

    ``libc++_shared.so`` is left out even when the NDK sysroot has a copy:
    it is only there for linking and must travel inside the APK.
    """
    provided: Set[str] = set()
    for directory in platform_dirs:
        provided.update(list_libs(directory))
    provided.discard(Constants.RUNTIME_LIBRARY)
    return provided


def resolve(
    root: Path,
    platform_dirs: Sequence[Path],
    search_dirs: Sequence[Path],
    inspector: BinaryInspector,
) -> List[Path]:
    """Compute the artifacts to bundle for ``root``, root included.

    Args:
        root: The shared object that is loaded by the application.
        platform_dirs: NDK sysroot directories describing what the OS provides.
        search_dirs: Directories searched in order for everything else.
        inspector: Source of NEEDED entries for each artifact.

    Returns:
        Artifacts in discovery order, each library name exactly once.

    Raises:
        PathNotFound: If ``root`` or a platform directory is missing.
        ResolutionError: If inspecting any artifact fails. Nothing is returned
            in that case.
    """
    root = Path(root)
    if not root.exists():
        raise PathNotFound(root)

    provided = provided_libs(platform_dirs)
    # Names are marked before their dependencies are explored; this is what
    # makes cyclic NEEDED graphs terminate.
    provided.add(root.name)

    closure: List[Path] = []
    stack: List[Path] = [root]
    while stack:
        artifact = stack.pop()
        closure.append(artifact)
        try:
            needed = inspector.needed_libs(artifact)
        except ResolutionError:
            raise
        except ApkBuildError as exc:
            raise ResolutionError(artifact, str(exc)) from exc

        for name in needed:
            if name == Constants.RUNTIME_LIBRARY:
                directories = platform_dirs
            elif name in provided:
                continue
            else:
                directories = search_dirs

            path = find_library_path(directories, name)
            if path is None:
                logger.warning('Shared library "%s" not found.', name)
                continue
            if name not in provided:
                provided.add(name)
                stack.append(path)

    logger.debug(
        "Closure of %s: %s", root.name, ", ".join(p.name for p in closure)
    )
    return closure
