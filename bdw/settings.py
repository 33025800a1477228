"""Settings resolution with named profile support."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from bdw.client import DEFAULT_TIMEOUT
from bdw.invoker import DEFAULT_EXECUTABLE

CONFIG_PATH = Path.home() / ".config" / "bdw" / "config.toml"


class BdwSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BDW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: str | None = None
    bd_path: str = DEFAULT_EXECUTABLE
    timeout: float | None = DEFAULT_TIMEOUT  # seconds; 0 or unset disables
    root: Path | None = None  # beads workspace; discovered from cwd when unset

    @field_validator("timeout")
    @classmethod
    def _zero_disables_timeout(cls, value: float | None) -> float | None:
        return value if value else None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Profile values arrive as init kwargs; env and .env must win over them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/bdw/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(profile: str | None = None) -> BdwSettings:
    """Resolve the active profile and return a fully populated BdwSettings.

    Precedence (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. BDW_DEFAULT_PROFILE env var
    3. default_profile key in ~/.config/bdw/config.toml
    4. First profile defined in ~/.config/bdw/config.toml

    Environment variables always override values from the profile table.
    """
    toml_config = _load_toml()

    active = (
        profile
        or os.environ.get("BDW_DEFAULT_PROFILE")
        or toml_config.get("default_profile")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        else:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    return BdwSettings(**profile_defaults)
