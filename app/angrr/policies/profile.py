"""Profile policies.

A profile policy prunes the numbered generations of a profile. Each
keep rule marks generations independently and the results are OR-ed,
so enabling another rule can only keep more generations.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from angrr.core.config import ProfileConfig
from angrr.core.context import Current
from angrr.gcroots.models import Generation, Profile

logger = logging.getLogger(__name__)


class ProfilePolicy:
    """A named profile policy.

    Args:
        name: Policy name.
        config: Policy settings.
    """

    def __init__(self, name: str, config: ProfileConfig) -> None:
        self.name = name
        self.config = config

    @property
    def profile_paths(self) -> list[Path]:
        return list(self.config.profile_paths)

    def keep_flags(self, profile: Profile, current: Current) -> list[bool]:
        """Compute which generations of the profile are kept.

        Args:
            profile: Profile with generations sorted newest first.
            current: Ambient state providing booted/current system paths.

        Returns:
            One flag per generation, in the profile's generation order.
        """
        generations = profile.generations
        keep = [False] * len(generations)

        current_name = profile.current_generation.name
        _mark_first(keep, generations, lambda g: g.path.name == current_name)

        if self.config.keep_booted_system and current.booted_system is not None:
            booted = current.booted_system
            _mark_first(keep, generations, lambda g: g.root.store_path == booted)

        if self.config.keep_current_system and current.current_system is not None:
            activated = current.current_system
            _mark_first(keep, generations, lambda g: g.root.store_path == activated)

        if self.config.keep_since is not None:
            for i, generation in enumerate(generations):
                if generation.root.age <= self.config.keep_since:
                    keep[i] = True

        if self.config.keep_latest_n is not None:
            for i in range(min(self.config.keep_latest_n, len(generations))):
                keep[i] = True

        return keep

    def removal_candidates(self, profile: Profile, current: Current) -> list[Generation]:
        """Generations of the profile that no keep rule retains."""
        keep = self.keep_flags(profile, current)
        candidates = [g for g, kept in zip(profile.generations, keep, strict=True) if not kept]
        logger.debug(
            "[%s] profile %s: %d generations, %d to remove",
            self.name,
            profile.path,
            len(profile.generations),
            len(candidates),
        )
        return candidates


def _mark_first(
    keep: list[bool],
    generations: tuple[Generation, ...],
    predicate: Callable[[Generation], bool],
) -> None:
    """Keep the first generation matching predicate."""
    for i, generation in enumerate(generations):
        if predicate(generation):
            keep[i] = True
            return
