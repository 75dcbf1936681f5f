"""GC root directory scanner and classifier.

Turns raw symlinks found in GC root directories into validated GcRoot
records, and reads profiles (a profile link plus its numbered
generation links) out of the collected roots. Classification only
reads the filesystem; nothing here removes anything.
"""

import logging
import os
import re
from collections.abc import Iterable, Iterator, Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path

from angrr.core.context import Current
from angrr.core.errors import TraversalError
from angrr.gcroots.models import GcRoot, Generation, Profile

logger = logging.getLogger(__name__)

# <profile-name>-<number>-link
GENERATION_LINK_RE = re.compile(rb"^(.*)-([0-9]+)-link$")


def validate_store_path(store: Path, target: Path) -> Path | None:
    """Canonicalize target and check that it lies inside the store.

    Args:
        store: Store root directory.
        target: Path to validate.

    Returns:
        The canonical path if it is inside the store, None otherwise.
    """
    try:
        canonical = Path(os.path.realpath(target, strict=True))
    except OSError as e:
        logger.warning("failed to canonicalize %s for validation: %s", target, e)
        return None
    if canonical.is_relative_to(store):
        return canonical
    return None


def expand_profile_paths(paths: Iterable[Path], homes: Iterable[Path]) -> list[Path]:
    """Expand ``~``-prefixed profile paths against each home directory.

    Absolute paths are returned unchanged. Duplicates are dropped while
    keeping the first occurrence.

    Args:
        paths: Configured profile paths.
        homes: Home directories to expand ``~`` into.

    Returns:
        Expanded profile paths.
    """
    home_list = list(homes)
    result: list[Path] = []
    for path in paths:
        text = str(path)
        if text == "~" or text.startswith("~/"):
            relative = text[2:]
            candidates = [home / relative if relative else home for home in home_list]
        else:
            candidates = [path]
        for candidate in candidates:
            if candidate not in result:
                result.append(candidate)
    return result


class GcRootScanner:
    """Discovers and classifies GC roots.

    Args:
        store: Store root; only targets canonicalizing inside it are kept.
        owned_only: Skip targets not owned by the running uid.
        current: Ambient state snapshot (time and uid).
    """

    def __init__(self, store: Path, *, owned_only: bool, current: Current) -> None:
        self._store = store
        self._owned_only = owned_only
        self._current = current

    def scan(self, directories: Iterable[Path]) -> Iterator[tuple[Path, GcRoot | None]]:
        """Traverse GC root directories.

        Yields one item per directory entry: the entry path and its
        GcRoot, or None when the entry was skipped by classification.

        Raises:
            TraversalError: If a directory or entry cannot be read.
        """
        for directory in directories:
            try:
                with os.scandir(directory) as it:
                    entries = sorted(Path(entry.path) for entry in it)
            except OSError as e:
                raise TraversalError(f"failed to open directory {directory}: {e}") from e

            for link_path in entries:
                yield link_path, self.classify(link_path)

    def classify(self, link_path: Path) -> GcRoot | None:
        """Turn a GC root symlink into a GcRoot.

        Args:
            link_path: Candidate GC root symlink.

        Returns:
            The classified root, or None if it is skipped.

        Raises:
            TraversalError: If the symlink cannot be read.
        """
        try:
            target = Path(os.readlink(link_path))
        except OSError as e:
            raise TraversalError(f"failed to read symbolic link {link_path}: {e}") from e
        if not target.is_absolute():
            target = link_path.parent / target
        logger.debug("filtering %s -> %s", link_path, target)

        try:
            metadata = os.lstat(target)
        except FileNotFoundError:
            logger.debug("target of %s not found, skip", link_path)
            return None
        except PermissionError:
            if self._owned_only:
                logger.debug("ignore %s in owned only mode, permission denied", target)
            else:
                logger.warning("ignore %s, permission denied reading metadata", target)
            return None
        except OSError as e:
            logger.warning("ignore %s, can not read metadata: %s", target, e)
            return None

        if self._owned_only and metadata.st_uid != self._current.uid:
            logger.debug("ignore %s in owned only mode, not owned by the current user", target)
            return None

        store_path = validate_store_path(self._store, target)
        if store_path is None:
            logger.warning("ignore %s, not a link into store", target)
            return None

        mtime = datetime.fromtimestamp(metadata.st_mtime, tz=UTC)
        age = max(self._current.now - mtime, timedelta(0))

        return GcRoot(
            path=target,
            path_metadata=metadata,
            link_path=link_path,
            store_path=store_path,
            age=age,
        )

    def read_profile(self, path: Path, roots: Mapping[Path, GcRoot]) -> Profile | None:
        """Read a profile and its generations.

        Generations are the entries of the profile's parent directory named
        ``<profile-name>-<number>-link`` that are also present in roots.

        Args:
            path: Profile link.
            roots: Collected GC roots keyed by path.

        Returns:
            The profile, or None if it is missing or not owned in owned-only mode.

        Raises:
            TraversalError: If the profile cannot be read.
        """
        try:
            metadata = os.lstat(path)
        except FileNotFoundError:
            logger.info("ignore profile %s, path not found", path)
            return None
        except PermissionError as e:
            if self._owned_only:
                logger.info("ignore profile %s in owned only mode, permission denied", path)
                return None
            raise TraversalError(f"failed to read metadata of profile path {path}: {e}") from e
        except OSError as e:
            raise TraversalError(f"failed to read metadata of profile path {path}: {e}") from e

        if self._owned_only and metadata.st_uid != self._current.uid:
            logger.info(
                "ignore profile %s in owned only mode, not owned by the current user", path
            )
            return None

        try:
            current_generation = Path(os.readlink(path))
        except OSError as e:
            raise TraversalError(f"failed to read symbolic link {path}: {e}") from e

        profile_name = os.fsencode(path.name)
        directory = path.parent
        generations: list[Generation] = []
        try:
            with os.scandir(directory) as it:
                entries = [Path(entry.path) for entry in it]
        except OSError as e:
            raise TraversalError(f"failed to read directory {directory}: {e}") from e

        for entry in entries:
            root = roots.get(entry)
            if root is None:
                continue
            match = GENERATION_LINK_RE.match(os.fsencode(entry.name))
            if match is None or match.group(1) != profile_name:
                continue
            generations.append(Generation(number=int(match.group(2)), path=entry, root=root))

        generations.sort(key=lambda g: g.number, reverse=True)
        return Profile(
            path=path,
            path_metadata=metadata,
            current_generation=current_generation,
            generations=tuple(generations),
        )
