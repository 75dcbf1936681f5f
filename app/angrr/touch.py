"""Touch GC roots.

Refreshes the modification time of GC root symlinks under a directory
so that temporary root policies consider them fresh. Only symlinks
resolving into the store are touched, and the link itself is updated
rather than what it points to.
"""

import logging
import os
import stat
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from angrr.gcroots.scanner import validate_store_path
from angrr.utils.formatting import err_console, quote_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TouchOptions:
    """Options for a touch pass.

    Attributes:
        path: File or directory to process.
        recursive: Descend into subdirectories.
        silent: Do not announce touched links.
        dry_run: Do not actually update timestamps.
    """

    path: Path
    recursive: bool = True
    silent: bool = False
    dry_run: bool = False


class Toucher:
    """Walks a path and touches GC root symlinks into the store.

    Args:
        store: Store root.
        options: Touch options.
        console: Console for "Touch" announcements.
    """

    def __init__(
        self, store: Path, options: TouchOptions, *, console: Console = err_console
    ) -> None:
        self._store = store
        self._options = options
        self._console = console
        self.touched: list[Path] = []

    def touch(self) -> list[Path]:
        """Touch every eligible symlink and return the touched paths."""
        for path in self._walk():
            self.touch_path(path)
        return self.touched

    def _walk(self) -> Iterator[Path]:
        root = self._options.path
        yield root
        if root.is_symlink() or not root.is_dir():
            return

        def on_error(error: OSError) -> None:
            logger.warning("failed to read directory entry: %s, skip", error)

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error, followlinks=False):
            base = Path(dirpath)
            for name in sorted([*dirnames, *filenames]):
                yield base / name
            if not self._options.recursive:
                return

    def touch_path(self, path: Path) -> bool:
        """Touch a single path if it is a symlink into the store.

        Returns:
            True if the path was (or in dry-run would be) touched.
        """
        logger.debug("processing %s", path)
        try:
            metadata = os.lstat(path)
        except OSError as e:
            logger.warning("ignore %s, can not read metadata: %s", path, e)
            return False

        if not stat.S_ISLNK(metadata.st_mode):
            return False
        if validate_store_path(self._store, path) is None:
            logger.debug("ignore %s, not a link into store", path)
            return False

        if self._options.silent:
            logger.debug("touch %s", path)
        else:
            self._console.print(f"[action.touch]Touch[/] {quote_path(path)}", highlight=False)

        if not self._options.dry_run:
            try:
                os.utime(path, ns=(metadata.st_atime_ns, time.time_ns()), follow_symlinks=False)
            except OSError as e:
                logger.error("failed to touch %s: %s", path, e)
                return False

        self.touched.append(path)
        return True
