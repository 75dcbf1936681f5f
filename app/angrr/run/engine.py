"""Retention run engine.

Walks the configured GC root directories, applies temporary root
policies in (priority, name) order and profile policies per profile,
and drives each removal candidate through the action state machine:

    Identified -> Remove | AboutToRemove | Ignored

The interactivity mode is fixed for the whole run. In ``once`` mode
every candidate from both policy families is queued and a single
confirmation decides the whole queue.
"""

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from angrr.core.config import Config
from angrr.core.context import Current
from angrr.core.errors import PromptError, RemovalError, UserLookupError
from angrr.gcroots.models import GcRoot, Profile
from angrr.gcroots.scanner import GcRootScanner, expand_profile_paths
from angrr.policies.profile import ProfilePolicy
from angrr.policies.temporary import TemporaryRootPolicy
from angrr.run.output import OutputSink
from angrr.run.statistics import Statistics
from angrr.utils.durations import format_duration_short
from angrr.utils.formatting import dry_run_indicator, err_console, quote_path
from angrr.utils.users import home_dir_for_uid

logger = logging.getLogger(__name__)


class Interactive(str, Enum):
    """When to prompt before removing.

    Attributes:
        NEVER: Remove without asking.
        ONCE: Ask once after all candidates are identified.
        ALWAYS: Ask for every candidate.
    """

    NEVER = "never"
    ONCE = "once"
    ALWAYS = "always"


class Action(Enum):
    """Announced action for a removal candidate."""

    REMOVE = ("Remove", "action.remove")
    ABOUT_TO_REMOVE = ("About to remove", "action.about_to_remove")
    IGNORED = ("Ignore", "action.ignore")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def style(self) -> str:
        return self.value[1]


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Per-invocation run options.

    Attributes:
        interactive: Prompting mode.
        dry_run: Perform every step except the final delete.
    """

    interactive: Interactive = Interactive.ONCE
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class RemovalCandidate:
    """A root selected for removal by a single policy."""

    policy: str
    root: GcRoot


def prompt_continue() -> bool:
    """Ask the operator whether to continue.

    Raises:
        PromptError: If no answer can be read (e.g. stdin closed).
    """
    try:
        return typer.confirm("Do you want to continue?", default=False, err=True)
    except typer.Abort as e:
        raise PromptError("failed to prompt for confirmation") from e


class RunEngine:
    """Decision orchestrator for one retention run.

    Args:
        config: Validated configuration.
        options: Run options.
        current: Ambient state captured at run start.
        sink: Destination for removed paths. Discards output if None.
        confirm: Confirmation callback, returns True to proceed.
        console: Console receiving action notifications.
        home_lookup: Maps a uid to its home directory.
    """

    def __init__(
        self,
        config: Config,
        options: RunOptions,
        *,
        current: Current,
        sink: OutputSink | None = None,
        confirm: Callable[[], bool] = prompt_continue,
        console: Console = err_console,
        home_lookup: Callable[[int], Path | None] = home_dir_for_uid,
    ) -> None:
        self._config = config
        self._options = options
        self._current = current
        self._sink = sink if sink is not None else OutputSink()
        self._confirm = confirm
        self._console = console
        self._home_lookup = home_lookup

        self._owned_only = config.owned_only.instantiate(current.uid)
        self._scanner = GcRootScanner(config.store, owned_only=self._owned_only, current=current)
        self._temporary_policies = [
            TemporaryRootPolicy(name, cfg, home_lookup=home_lookup)
            for name, cfg in config.enabled_temporary_root_policies()
        ]
        self._profile_policies = [
            ProfilePolicy(name, cfg) for name, cfg in config.enabled_profile_policies()
        ]
        self._name_width = max(
            (len(p.name) for p in [*self._temporary_policies, *self._profile_policies]),
            default=0,
        )

        self.statistics = Statistics()
        self.removed: list[Path] = []
        self._removed_paths: set[Path] = set()

    @property
    def temporary_policies(self) -> list[TemporaryRootPolicy]:
        """Enabled temporary root policies in evaluation order."""
        return list(self._temporary_policies)

    def run(self) -> None:
        """Execute the retention pass.

        Raises:
            AngrrError: On traversal, filter, removal or prompt failure.
        """
        roots = self.collect_gc_roots()
        waiting: list[RemovalCandidate] = []
        claimed = self._run_temporary_root_policies(roots, waiting)
        self._run_profile_policies(roots, claimed, waiting)

        if waiting:
            if self._confirm():
                for candidate in waiting:
                    self._remove(candidate)
            else:
                for candidate in waiting:
                    self._notify(candidate, Action.IGNORED)
                logger.info("nothing removed, %d candidates declined", len(waiting))

    def finish(self) -> Statistics:
        """Flush output and return the run statistics."""
        self._sink.flush()
        return self.statistics

    def collect_gc_roots(self) -> list[GcRoot]:
        """Traverse the configured directories and classify every entry."""
        roots: list[GcRoot] = []
        for _link_path, root in self._scanner.scan(self._config.directory):
            self.statistics.traversed.increase()
            if root is not None:
                roots.append(root)
        return roots

    def match(self, root: GcRoot) -> TemporaryRootPolicy | None:
        """Return the first temporary root policy monitoring the root."""
        for policy in self._temporary_policies:
            if policy.monitored(root):
                return policy
        return None

    def _run_temporary_root_policies(
        self, roots: list[GcRoot], waiting: list[RemovalCandidate]
    ) -> set[Path]:
        claimed: set[Path] = set()
        for root in roots:
            policy = self.match(root)
            if policy is None:
                logger.debug("keep %s, no matching temporary root policy", root.path)
                continue

            claimed.add(root.link_path)
            self.statistics.monitored.increase()
            if not policy.expired(root):
                logger.debug("[%s] keep %s, not expired", policy.name, root.path)
                continue

            self.statistics.expired.increase()
            self._handle(RemovalCandidate(policy.name, root), waiting)
        return claimed

    def _run_profile_policies(
        self,
        roots: list[GcRoot],
        claimed: set[Path],
        waiting: list[RemovalCandidate],
    ) -> None:
        if not self._profile_policies:
            return

        lookup: dict[Path, GcRoot] = {}
        for root in roots:
            lookup.setdefault(root.path, root)

        homes: list[Path] | None = None
        seen_profiles: set[Path] = set()
        for policy in self._profile_policies:
            paths = policy.profile_paths
            if any(str(p).startswith("~") for p in paths):
                if homes is None:
                    homes = self._profile_homes(roots)
                paths = expand_profile_paths(paths, homes)

            for path in paths:
                if path in seen_profiles:
                    logger.warning("[%s] skip profile %s, already processed", policy.name, path)
                    continue
                seen_profiles.add(path)

                profile = self._scanner.read_profile(path, lookup)
                if profile is None:
                    continue
                self._run_profile_policy(policy, profile, claimed, waiting)

    def _run_profile_policy(
        self,
        policy: ProfilePolicy,
        profile: Profile,
        claimed: set[Path],
        waiting: list[RemovalCandidate],
    ) -> None:
        self.statistics.monitored.add(len(profile.generations))
        for generation in policy.removal_candidates(profile, self._current):
            root = generation.root
            if root.link_path in claimed:
                logger.debug(
                    "[%s] keep generation %s, claimed by a temporary root policy",
                    policy.name,
                    generation.path,
                )
                continue
            claimed.add(root.link_path)
            self.statistics.expired.increase()
            self._handle(RemovalCandidate(policy.name, root), waiting)

    def _profile_homes(self, roots: Iterable[GcRoot]) -> list[Path]:
        """Home directories that ``~`` in profile paths expands to."""
        if self._owned_only:
            uids = [self._current.uid]
        else:
            uids = sorted({root.owner_uid for root in roots})

        homes: list[Path] = []
        for uid in uids:
            home = self._home_lookup(uid)
            if home is None:
                raise UserLookupError(f"failed to get user by uid {uid}")
            homes.append(home)
        logger.debug("profile home directories: %s", homes)
        return homes

    def _handle(self, candidate: RemovalCandidate, waiting: list[RemovalCandidate]) -> None:
        mode = self._options.interactive
        if mode is Interactive.NEVER:
            self._remove(candidate)
        elif mode is Interactive.ONCE:
            self._notify(candidate, Action.ABOUT_TO_REMOVE)
            waiting.append(candidate)
        else:
            self._notify(candidate, Action.ABOUT_TO_REMOVE)
            if self._confirm():
                self._remove(candidate)
            else:
                self._notify(candidate, Action.IGNORED)

    def path_to_remove(self, root: GcRoot) -> Path:
        """The link itself with remove-root, otherwise its target."""
        return root.link_path if self._config.remove_root else root.path

    def _remove(self, candidate: RemovalCandidate) -> None:
        path = self.path_to_remove(candidate.root)
        if path in self._removed_paths:
            logger.debug("[%s] skip %s, already removed", candidate.policy, path)
            return
        self._notify(candidate, Action.REMOVE)

        if not self._options.dry_run:
            try:
                os.unlink(path)
            except OSError as e:
                raise RemovalError(f"failed to remove {path}: {e}") from e

        self._removed_paths.add(path)
        self.removed.append(path)
        self.statistics.removed.increase()
        self._sink.write(path)

    def _notify(self, candidate: RemovalCandidate, action: Action) -> None:
        dry_run = action is Action.REMOVE and self._options.dry_run
        policy = escape(f"[{candidate.policy:<{self._name_width}}]")
        path = quote_path(self.path_to_remove(candidate.root))
        age = format_duration_short(candidate.root.age)
        self._console.print(
            f"{policy} [{action.style}]{action.label}[/]{dry_run_indicator(dry_run)} "
            f"{path} ([bold]{age}[/] ago)",
            highlight=False,
            soft_wrap=True,
        )
