"""Configuration models and loading.

The configuration is assembled from TOML files and environment
variables, merged in order of increasing precedence:

1. Bundled defaults (``angrr/data/angrr.toml``)
2. Global file (``/etc/angrr/config.toml``)
3. User file (``~/.config/angrr/config.toml``)
4. File passed with ``--config``
5. ``ANGRR_*`` environment variables, read by pydantic-settings

Tables are merged recursively, so enabling a bundled policy only
needs ``enable = true`` in a later file. The merged document is
validated with Pydantic models that mirror the kebab-case TOML keys.
"""

import logging
import os
import re
import tomllib
from collections.abc import Mapping
from datetime import timedelta
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Annotated, Any, Literal

import tomli_w
from pydantic import (
    AliasGenerator,
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from angrr.core.errors import AngrrError
from angrr.core.paths import (
    DEFAULT_GC_ROOT_DIRECTORY,
    DEFAULT_STORE,
    get_global_config_path,
    get_user_config_path,
)
from angrr.utils.durations import format_duration, parse_duration

logger = logging.getLogger(__name__)

ENV_PREFIX = "ANGRR_"

LogLevel = Literal["off", "error", "warn", "info", "debug", "trace"]


class ConfigError(AngrrError):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when an explicitly requested configuration file is missing."""


class ConfigParseError(ConfigError):
    """Raised when a configuration file is not valid TOML."""


class ConfigValidationError(ConfigError):
    """Raised when the merged configuration does not match the schema."""


def _kebab(name: str) -> str:
    return name.replace("_", "-")


def _coerce_duration(value: object) -> object:
    """Accept humantime strings and integer seconds for duration fields."""
    if isinstance(value, str):
        return parse_duration(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return timedelta(seconds=value)
    return value


def _serialize_duration(value: timedelta | None) -> str | None:
    return format_duration(value) if value is not None else None


class OwnedOnly(str, Enum):
    """Owned-only mode setting.

    Attributes:
        AUTO: Owned-only when not running as root.
        TRUE: Only consider GC roots whose target is owned by the current user.
        FALSE: Consider GC roots of all users.
    """

    AUTO = "auto"
    TRUE = "true"
    FALSE = "false"

    def instantiate(self, current_uid: int) -> bool:
        """Resolve the setting to a concrete boolean for the running uid."""
        if self is OwnedOnly.AUTO:
            mode = current_uid != 0
            if mode:
                logger.info("running as non-root user, only monitoring owned GC roots")
            else:
                logger.info("running as root user, monitoring all GC roots")
            return mode
        return self is OwnedOnly.TRUE


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=_kebab,
        populate_by_name=True,
    )


class FilterConfig(_ConfigModel):
    """External filter program invocation.

    Attributes:
        program: Executable name or path.
        arguments: Arguments passed to the program.
    """

    program: str
    arguments: list[str] = Field(default_factory=list)


class PolicyConfig(_ConfigModel):
    """Settings shared by every policy."""

    enable: bool = True


def _default_ignore_prefixes() -> list[Path]:
    # Covers both /nix/var/nix/profiles/system and per-user profiles
    return [Path("/nix/var/nix/profiles")]


def _default_ignore_prefixes_in_home() -> list[Path]:
    return [
        Path(".local/state/nix/profiles"),
        Path(".local/state/home-manager/gcroots"),
        Path(".cache/nix/flake-registry.json"),
    ]


class TemporaryRootConfig(PolicyConfig):
    """Temporary root policy settings.

    Attributes:
        priority: Lower numbers are evaluated first. Ties are broken by
            policy name in lexicographical order.
        path_regex: Only targets matching this regex are monitored.
        filter: External program consulted after all other checks.
        ignore_prefixes: Absolute target prefixes to ignore.
        ignore_prefixes_in_home: Prefixes relative to the target owner's home.
        period: Retention period.
    """

    priority: Annotated[int, Field(ge=0)] = 100
    path_regex: str
    filter: FilterConfig | None = None
    ignore_prefixes: list[Path] = Field(default_factory=_default_ignore_prefixes)
    ignore_prefixes_in_home: list[Path] = Field(default_factory=_default_ignore_prefixes_in_home)
    period: timedelta | None = None

    _regex: re.Pattern[bytes] = PrivateAttr()

    @field_validator("path_regex")
    @classmethod
    def validate_path_regex(cls, v: str) -> str:
        """Ensure the regex compiles."""
        try:
            re.compile(os.fsencode(v))
        except re.error as e:
            msg = f"invalid path regex {v!r}: {e}"
            raise ValueError(msg) from None
        return v

    @field_validator("period", mode="before")
    @classmethod
    def parse_period(cls, v: object) -> object:
        """Parse humantime duration strings."""
        return _coerce_duration(v)

    @field_serializer("period")
    def serialize_period(self, value: timedelta | None) -> str | None:
        return _serialize_duration(value)

    def model_post_init(self, __context: Any) -> None:
        self._regex = re.compile(os.fsencode(self.path_regex))

    @property
    def regex(self) -> re.Pattern[bytes]:
        """Compiled bytes regex for path_regex."""
        return self._regex


class ProfileConfig(PolicyConfig):
    """Profile policy settings.

    Attributes:
        profile_paths: Profile links. A leading ``~`` expands to the current
            user's home in owned-only mode, or to the home of every user
            owning a discovered GC root otherwise.
        keep_since: Keep every generation younger than this.
        keep_latest_n: Keep the N newest generations.
        keep_current_system: Keep the activated system generation.
        keep_booted_system: Keep the booted system generation.
    """

    profile_paths: list[Path]
    keep_since: timedelta | None = None
    keep_latest_n: Annotated[int, Field(ge=0)] | None = None
    keep_current_system: bool = True
    keep_booted_system: bool = True

    @field_validator("keep_since", mode="before")
    @classmethod
    def parse_keep_since(cls, v: object) -> object:
        """Parse humantime duration strings."""
        return _coerce_duration(v)

    @field_serializer("keep_since")
    def serialize_keep_since(self, value: timedelta | None) -> str | None:
        return _serialize_duration(value)


def _field_names(data: Mapping[str, Any]) -> dict[str, Any]:
    """Map top-level kebab-case TOML keys to Config field names."""
    return {key.replace("-", "_"): value for key, value in data.items()}


class Config(BaseSettings):
    """Complete angrr configuration.

    Top-level fields can be overridden with ``ANGRR_<FIELD>`` environment
    variables, e.g. ``ANGRR_OWNED_ONLY=true``. List and table fields take
    JSON, e.g. ``ANGRR_DIRECTORY='["/nix/var/nix/gcroots/auto"]'``.

    Attributes:
        store: Store root; only GC roots resolving inside it are considered.
        owned_only: Restrict to GC roots whose target the current user owns.
        remove_root: Remove the GC root link instead of its target.
        directory: Directories containing GC roots.
        log_level: Default log level.
        temporary_root_policies: Named temporary root policies.
        profile_policies: Named profile policies.
    """

    # Field names stay unaliased on input so env_prefix applies to them.
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="forbid",
        alias_generator=AliasGenerator(serialization_alias=_kebab),
    )

    store: Path = DEFAULT_STORE
    owned_only: OwnedOnly = OwnedOnly.AUTO
    remove_root: bool = False
    directory: list[Path] = Field(default_factory=lambda: [DEFAULT_GC_ROOT_DIRECTORY])
    log_level: LogLevel = "info"
    temporary_root_policies: dict[str, TemporaryRootConfig] = Field(default_factory=dict)
    profile_policies: dict[str, ProfileConfig] = Field(default_factory=dict)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment variables win over the merged TOML files."""
        return env_settings, init_settings

    @model_validator(mode="before")
    @classmethod
    def accept_kebab_keys(cls, data: Any) -> Any:
        """Accept the kebab-case keys used in TOML files."""
        if isinstance(data, Mapping):
            return _field_names(data)
        return data

    @field_validator("owned_only", mode="before")
    @classmethod
    def parse_owned_only(cls, v: object) -> object:
        """Accept TOML booleans as well as the string forms."""
        if isinstance(v, bool):
            return OwnedOnly.TRUE if v else OwnedOnly.FALSE
        if isinstance(v, str):
            return v.lower()
        return v

    @model_validator(mode="after")
    def validate_policies(self) -> "Config":
        """Check per-policy requirements that need the policy name."""
        for name, temporary in self.temporary_root_policies.items():
            if temporary.enable and temporary.period is None:
                msg = f"invalid temporary root policy {name}: period must be set"
                raise ValueError(msg)

        seen: dict[Path, str] = {}
        for name, profile in self.profile_policies.items():
            if profile.enable and profile.keep_since is None and profile.keep_latest_n is None:
                msg = (
                    f"invalid profile policy {name}: at least one of "
                    "keep-since and keep-latest-n must be set"
                )
                raise ValueError(msg)
            for path in profile.profile_paths:
                if not (path.is_absolute() or str(path).startswith("~")):
                    msg = (
                        f"invalid profile policy {name}: profile path {str(path)!r} "
                        "must be absolute or start with '~'"
                    )
                    raise ValueError(msg)
                if not profile.enable:
                    continue
                if path in seen:
                    msg = (
                        f"duplicate profile path {str(path)!r} in profile policies "
                        f"{seen[path]} and {name}"
                    )
                    raise ValueError(msg)
                seen[path] = name
        return self

    def enabled_temporary_root_policies(self) -> list[tuple[str, TemporaryRootConfig]]:
        """Enabled temporary root policies ordered by (priority, name)."""
        enabled = [
            (name, cfg) for name, cfg in self.temporary_root_policies.items() if cfg.enable
        ]
        enabled.sort(key=lambda item: (item[1].priority, item[0]))
        return enabled

    def enabled_profile_policies(self) -> list[tuple[str, ProfileConfig]]:
        """Enabled profile policies ordered by name."""
        return sorted(
            ((name, cfg) for name, cfg in self.profile_policies.items() if cfg.enable),
            key=lambda item: item[0],
        )


def get_bundled_config_path() -> Path:
    """Get the bundled default configuration path.

    Returns:
        Path to the bundled data/angrr.toml
    """
    return resources.files("angrr.data").joinpath("angrr.toml")  # type: ignore[return-value]


def _read_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file into a dictionary.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read.
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read configuration {path}: {e}") from e


def merge_tables(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge two TOML tables, values in override win."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_tables(current, value)
        else:
            merged[key] = value
    return merged


def load_config(
    path: Path | None = None,
    *,
    search_default_locations: bool = True,
) -> Config:
    """Load, merge and validate the configuration.

    Args:
        path: Explicit configuration file. Must exist when given.
        search_default_locations: Merge the global and user files when present.

    Returns:
        Validated Config object with ANGRR_* environment overrides applied.

    Raises:
        ConfigNotFoundError: If path is given but does not exist.
        ConfigParseError: If any file has invalid TOML syntax.
        ConfigValidationError: If the merged content is invalid.
    """
    data = _read_toml(get_bundled_config_path())

    sources: list[Path] = []
    if search_default_locations:
        global_path = get_global_config_path()
        if global_path is not None:
            sources.append(global_path)
        user_path = get_user_config_path()
        if user_path.exists():
            sources.append(user_path)
    if path is not None:
        if not path.exists():
            raise ConfigNotFoundError(f"Configuration file {path} does not exist")
        sources.append(path)

    if not sources:
        logger.info("no configuration file found, using default configuration")
    for source in sources:
        logger.debug("merging configuration from %s", source)
        data = merge_tables(data, _read_toml(source))

    try:
        return Config(**_field_names(data))
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration: {e}") from e


def render_config(config: Config) -> str:
    """Render a configuration as TOML."""
    data = config.model_dump(mode="json", by_alias=True, exclude_none=True)
    return tomli_w.dumps(data)
