"""GC root domain models.

This module defines the records produced while traversing GC root
directories and profiles. All records are immutable and shared
read-only between the flat root list and profile generation lists.
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path


@dataclass(frozen=True, slots=True)
class GcRoot:
    """A validated GC root.

    Attributes:
        path: Target of the GC root symlink, as read from the link.
        path_metadata: lstat result of the target (owner uid, mtime, ...).
        link_path: The GC root symlink itself.
        store_path: Canonicalized target, guaranteed to lie inside the store.
        age: Time since the target was last modified, never negative.
    """

    path: Path
    path_metadata: os.stat_result
    link_path: Path
    store_path: Path
    age: timedelta

    @property
    def owner_uid(self) -> int:
        """Owner uid of the target."""
        return self.path_metadata.st_uid


@dataclass(frozen=True, slots=True)
class Generation:
    """A numbered generation of a profile.

    Attributes:
        number: Generation number parsed from ``<profile>-<number>-link``.
        path: The generation link inside the profile directory.
        root: The GC root this generation was discovered through.
    """

    number: int
    path: Path
    root: GcRoot


@dataclass(frozen=True, slots=True)
class Profile:
    """A profile link and its generations.

    Attributes:
        path: The profile link (e.g. /nix/var/nix/profiles/system).
        path_metadata: lstat result of the profile link.
        current_generation: Target of the profile link.
        generations: Generations sorted by number, newest first.
    """

    path: Path
    path_metadata: os.stat_result
    current_generation: Path
    generations: tuple[Generation, ...]
