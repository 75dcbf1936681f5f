"""Pytest configuration and shared fixtures.

Most tests work on a miniature Nix layout built under tmp_path: a
store, an ``auto`` GC root directory, a profiles directory and a
scratch area holding ``result``-style links.
"""

import io
import logging
import os
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from angrr.core.config import Config
from angrr.core.context import Current
from angrr.core.log import PACKAGE_LOGGER
from angrr.core.theme import get_theme
from rich.console import Console


class NixTree:
    """Fake store, GC root directory and profiles on disk.

    Ages are applied to link mtimes relative to ``now`` so that the
    scanner computes the same age the test asked for.
    """

    def __init__(self, base: Path, now: datetime) -> None:
        self.base = base
        self.now = now
        self.store = base / "nix" / "store"
        self.auto = base / "gcroots" / "auto"
        self.profiles = base / "profiles"
        self.work = base / "work"
        for directory in (self.store, self.auto, self.profiles, self.work):
            directory.mkdir(parents=True)
        self._counter = 0

    def _next(self) -> str:
        self._counter += 1
        return f"{self._counter:08d}"

    def store_path(self, name: str) -> Path:
        """Create a store directory and return it."""
        path = self.store / f"{self._next()}-{name}"
        path.mkdir()
        return path

    def set_age(self, path: Path, age: timedelta) -> None:
        """Set the mtime of a link (not its target)."""
        timestamp = (self.now - age).timestamp()
        os.utime(path, (timestamp, timestamp), follow_symlinks=False)

    def register(self, target: Path) -> Path:
        """Add a link to target in the auto GC root directory."""
        link = self.auto / self._next()
        link.symlink_to(target)
        return link

    def temporary_root(self, relative: str, age: timedelta) -> Path:
        """Create work/<relative> pointing into the store and register it.

        Returns:
            The link target (what a run removes unless remove-root is set).
        """
        target = self.work / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.symlink_to(self.store_path(target.name))
        self.set_age(target, age)
        self.register(target)
        return target

    def profile(self, name: str, ages: dict[int, timedelta], current: int) -> Path:
        """Create a profile with numbered generations.

        Args:
            name: Profile file name.
            ages: Generation number to age.
            current: Generation the profile link points to.

        Returns:
            The profile link.
        """
        for number, age in ages.items():
            generation = self.profiles / f"{name}-{number}-link"
            generation.symlink_to(self.store_path(f"{name}-{number}"))
            self.set_age(generation, age)
            self.register(generation)
        profile = self.profiles / name
        profile.symlink_to(f"{name}-{current}-link")
        return profile

    def generation(self, name: str, number: int) -> Path:
        return self.profiles / f"{name}-{number}-link"

    def config(
        self,
        *,
        temporary: dict[str, dict[str, Any]] | None = None,
        profile: dict[str, dict[str, Any]] | None = None,
        **top: Any,
    ) -> Config:
        """Build a Config pointing at this tree."""
        data: dict[str, Any] = {
            "store": str(self.store),
            "owned-only": "false",
            "directory": [str(self.auto)],
            "temporary-root-policies": temporary or {},
            "profile-policies": profile or {},
        }
        data.update(top)
        return Config.model_validate(data)

    def current(self, **kwargs: Any) -> Current:
        return Current(now=self.now, uid=os.geteuid(), **kwargs)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for age calculations."""
    return datetime.now(UTC).replace(microsecond=0)


@pytest.fixture
def nix_tree(tmp_path: Path, now: datetime) -> NixTree:
    """Miniature Nix layout under a resolved tmp_path."""
    return NixTree(tmp_path.resolve(), now)


@pytest.fixture
def capture_console() -> Console:
    """Themed console writing into a StringIO buffer."""
    return Console(
        theme=get_theme(),
        file=io.StringIO(),
        width=200,
        color_system=None,
        force_terminal=False,
    )


@pytest.fixture
def console_output(capture_console: Console) -> Callable[[], str]:
    """Return a callable reading what capture_console has printed."""

    def read() -> str:
        file = capture_console.file
        assert isinstance(file, io.StringIO)
        return file.getvalue()

    return read


@pytest.fixture
def no_home() -> Callable[[int], Path | None]:
    """Home lookup that knows no users."""
    return lambda uid: None


@pytest.fixture(autouse=True)
def isolate_config_locations(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host configuration files and ANGRR_* variables out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setattr("angrr.core.config.get_global_config_path", lambda: None)
    for name in list(os.environ):
        if name.startswith("ANGRR_"):
            monkeypatch.delenv(name)


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo level and handler changes made by CLI and logging tests."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    yield
    logger.handlers = []
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def write_config(nix_tree: NixTree) -> Callable[..., Path]:
    """Write a config file targeting nix_tree with the result policy enabled.

    Extra TOML passed to the returned callable is appended verbatim.
    """

    def write(extra: str = "") -> Path:
        path = nix_tree.base / "angrr.toml"
        path.write_text(
            f'store = "{nix_tree.store}"\n'
            "owned-only = false\n"
            f'directory = ["{nix_tree.auto}"]\n'
            "\n[temporary-root-policies.result]\n"
            "enable = true\n"
            'period = "30d"\n' + extra
        )
        return path

    return write
