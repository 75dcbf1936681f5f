"""Unit tests for config CLI commands."""

import tomllib
from collections.abc import Callable
from pathlib import Path

from angrr.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


class TestConfigShow:
    """Tests for angrr config show command."""

    def test_prints_merged_toml(self, write_config: Callable[..., Path]) -> None:
        result = runner.invoke(app, ["--config", str(write_config()), "config", "show"])

        assert result.exit_code == 0
        data = tomllib.loads(result.output)
        assert data["owned-only"] == "false"
        assert data["temporary-root-policies"]["result"]["enable"] is True
        assert data["temporary-root-policies"]["result"]["period"] == "30days"


class TestConfigValidate:
    """Tests for angrr config validate command."""

    def test_valid(self, write_config: Callable[..., Path]) -> None:
        result = runner.invoke(app, ["--config", str(write_config()), "config", "validate"])

        assert result.exit_code == 0
        assert "Configuration is valid (1 enabled policies)" in result.output

    def test_profile_policy_without_keep_rule(self, write_config: Callable[..., Path]) -> None:
        extra = '\n[profile-policies.mine]\nprofile-paths = ["/nix/var/nix/profiles/mine"]\n'

        result = runner.invoke(app, ["--config", str(write_config(extra)), "config", "validate"])

        assert result.exit_code == 1
        assert "at least one of keep-since and keep-latest-n" in result.output
