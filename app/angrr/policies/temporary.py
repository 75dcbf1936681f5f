"""Temporary root policies.

A temporary root policy decides whether an ad-hoc GC root (a build
result link, a direnv cache, ...) is monitored and whether it has
outlived its retention period.
"""

import logging
import os
from collections.abc import Callable
from pathlib import Path

from angrr.core.config import TemporaryRootConfig
from angrr.gcroots.models import GcRoot
from angrr.policies.filter import ExternalFilter, FilterInput
from angrr.utils.users import home_dir_for_uid

logger = logging.getLogger(__name__)


class TemporaryRootPolicy:
    """A named temporary root policy.

    Args:
        name: Policy name.
        config: Policy settings.
        home_lookup: Maps a uid to its home directory, None if unknown.
    """

    def __init__(
        self,
        name: str,
        config: TemporaryRootConfig,
        *,
        home_lookup: Callable[[int], Path | None] = home_dir_for_uid,
    ) -> None:
        self.name = name
        self.config = config
        self._home_lookup = home_lookup
        self._filter = ExternalFilter(config.filter) if config.filter is not None else None

    @property
    def priority(self) -> int:
        return self.config.priority

    def monitored(self, root: GcRoot) -> bool:
        """Check whether this policy monitors the root.

        Checks in order: ignore prefixes, ignore prefixes in the owner's
        home, path regex, external filter.

        Raises:
            FilterError: If the external filter cannot be run.
        """
        if self._ignored_by_prefix(root.path) or self._ignored_by_prefix_in_home(root):
            logger.debug("[%s] ignore %s, path in ignore prefixes", self.name, root.path)
            return False

        if self.config.regex.search(os.fsencode(root.path)) is None:
            logger.debug(
                "[%s] ignore %s, path does not match regex %r",
                self.name,
                root.path,
                self.config.path_regex,
            )
            return False

        if self._filter is not None:
            if not self._filter.run(FilterInput(path=root.path, gc_root=root.link_path)):
                logger.debug(
                    "[%s] ignore %s, filtered out by external filter", self.name, root.path
                )
                return False

        return True

    def expired(self, root: GcRoot) -> bool:
        """Check whether the root is older than the retention period."""
        period = self.config.period
        if period is None:
            return False
        return root.age > period

    def _ignored_by_prefix(self, path: Path) -> bool:
        return any(path.is_relative_to(prefix) for prefix in self.config.ignore_prefixes)

    def _ignored_by_prefix_in_home(self, root: GcRoot) -> bool:
        if not self.config.ignore_prefixes_in_home:
            return False
        home = self._home_lookup(root.owner_uid)
        if home is None:
            return False
        prefixes = self.config.ignore_prefixes_in_home
        return any(root.path.is_relative_to(home / prefix) for prefix in prefixes)
