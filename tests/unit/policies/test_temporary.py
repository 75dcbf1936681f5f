"""Unit tests for temporary root policies."""

import os
from datetime import timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from angrr.core.config import TemporaryRootConfig
from angrr.gcroots.models import GcRoot
from angrr.policies.temporary import TemporaryRootPolicy


def _root(path: str, age: timedelta = timedelta(days=1), uid: int = 1000) -> GcRoot:
    metadata = os.stat_result((0o120777, 0, 0, 1, uid, 100, 0, 0, 0, 0))
    return GcRoot(
        path=Path(path),
        path_metadata=metadata,
        link_path=Path("/nix/var/nix/gcroots/auto/abc"),
        store_path=Path("/nix/store/abc-hello"),
        age=age,
    )


def _policy(home: Path | None = Path("/home/alice"), **overrides: object) -> TemporaryRootPolicy:
    data: dict[str, object] = {"path-regex": "/result[^/]*$", "period": "7d"}
    data.update(overrides)
    return TemporaryRootPolicy(
        "result", TemporaryRootConfig.model_validate(data), home_lookup=lambda uid: home
    )


class TestMonitored:
    """Tests for TemporaryRootPolicy.monitored."""

    def test_matching_regex(self) -> None:
        assert _policy().monitored(_root("/home/alice/src/app/result"))
        assert _policy().monitored(_root("/home/alice/src/app/result-bin"))

    def test_regex_is_searched(self) -> None:
        policy = _policy(**{"path-regex": "direnv"})

        assert policy.monitored(_root("/home/alice/src/app/.direnv/flake-profile"))

    def test_non_matching_regex(self) -> None:
        assert not _policy().monitored(_root("/home/alice/src/app/result/inner"))

    def test_ignore_prefix(self) -> None:
        """The default ignore prefix covers system and per-user profiles."""
        policy = _policy(**{"path-regex": "."})

        assert not policy.monitored(_root("/nix/var/nix/profiles/system-3-link"))

    def test_ignore_prefix_is_component_wise(self) -> None:
        policy = _policy(**{"ignore-prefixes": ["/srv/keep"]})

        assert not policy.monitored(_root("/srv/keep/result"))
        assert policy.monitored(_root("/srv/keeper/result"))

    def test_ignore_prefix_in_home(self) -> None:
        policy = _policy(**{"path-regex": "."})

        assert not policy.monitored(_root("/home/alice/.local/state/nix/profiles/profile-2-link"))
        assert policy.monitored(_root("/home/alice/src/result"))

    def test_unknown_owner_home_never_excludes(self) -> None:
        policy = _policy(home=None, **{"path-regex": "."})

        assert policy.monitored(_root("/home/alice/.local/state/nix/profiles/profile-2-link"))

    def test_home_lookup_uses_owner_uid(self) -> None:
        lookup = MagicMock(return_value=Path("/home/bob"))
        config = TemporaryRootConfig.model_validate({"path-regex": ".", "period": "1d"})
        policy = TemporaryRootPolicy("any", config, home_lookup=lookup)

        policy.monitored(_root("/home/bob/x", uid=1234))

        lookup.assert_called_once_with(1234)

    @patch("angrr.policies.temporary.ExternalFilter.run")
    def test_filter_consulted_last(self, mock_run: MagicMock) -> None:
        """The filter only runs for roots that passed the other checks."""
        mock_run.return_value = False
        policy = _policy(filter={"program": "keep-filter"})

        assert not policy.monitored(_root("/home/alice/src/result"))
        assert not policy.monitored(_root("/home/alice/src/other"))
        assert mock_run.call_count == 1

    @patch("angrr.policies.temporary.ExternalFilter.run")
    def test_filter_accepts(self, mock_run: MagicMock) -> None:
        mock_run.return_value = True
        policy = _policy(filter={"program": "keep-filter"})

        assert policy.monitored(_root("/home/alice/src/result"))
        (filter_input,) = mock_run.call_args.args
        assert filter_input.path == Path("/home/alice/src/result")
        assert filter_input.gc_root == Path("/nix/var/nix/gcroots/auto/abc")


class TestExpired:
    """Tests for TemporaryRootPolicy.expired."""

    @pytest.mark.parametrize(
        ("age", "expected"),
        [
            (timedelta(days=6), False),
            (timedelta(days=7), False),
            (timedelta(days=7, seconds=1), True),
        ],
    )
    def test_strictly_older_than_period(self, age: timedelta, expected: bool) -> None:
        assert _policy().expired(_root("/home/alice/result", age=age)) is expected

    def test_priority(self) -> None:
        assert _policy(priority=5).priority == 5
