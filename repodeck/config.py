"""
Configuration management for repodeck.

Loads and validates repodeck.yml:
- repos: the registered local repositories (name, path, kind)
- kinds: per-kind behaviour (directory check exemption, editor command)
- commands: git/gh binaries and an optional per-command timeout
- aggregation: how many repositories are fetched at once
- utilities: named helper scripts
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .models import RepoKind
from .remotes import GITHUB_HOST

CONFIG_FILENAME = "repodeck.yml"
CONFIG_ENV_VAR = "REPODECK_CONFIG"


class ConfigError(Exception):
    """repodeck.yml could not be interpreted."""


@dataclass
class KindConfig:
    """Behaviour attached to a repository kind."""

    # Paths of some kinds (e.g. WSL) are not resolvable from the host filesystem
    skip_directory_check: bool = False
    command: str | None = None  # editor override, "{path}" is substituted


@dataclass
class CommandsConfig:
    git: str = "git"
    gh: str = "gh"
    timeout: float | None = None  # seconds; None waits forever
    # Hosts gh is logged in to; anything beyond github.com is GitHub Enterprise
    hosts: list[str] = field(default_factory=lambda: [GITHUB_HOST])


@dataclass
class AggregationConfig:
    concurrency: int = 1  # 1 = one repository at a time, in registry order


@dataclass
class RepoEntry:
    """A repository as written in the config file."""

    name: str
    path: str
    kind: RepoKind = RepoKind.CODE


@dataclass
class UtilityEntry:
    name: str
    command: str
    description: str = ""
    type: str = "bash"  # bash, powershell, python
    requires_confirmation: bool = False
    requires_admin: bool = False


def default_kinds() -> dict[RepoKind, KindConfig]:
    return {
        RepoKind.CODE: KindConfig(),
        RepoKind.WSL: KindConfig(skip_directory_check=True),
        RepoKind.STUDIO: KindConfig(),
        RepoKind.OTHER: KindConfig(),
    }


@dataclass
class RepodeckConfig:
    """Complete repodeck configuration."""

    repos: list[RepoEntry] = field(default_factory=list)
    kinds: dict[RepoKind, KindConfig] = field(default_factory=default_kinds)
    commands: CommandsConfig = field(default_factory=CommandsConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    utilities: list[UtilityEntry] = field(default_factory=list)
    wsl_distro: str = "Ubuntu"
    source: Path | None = None

    def kind_config(self, kind: RepoKind) -> KindConfig:
        return self.kinds.get(kind, KindConfig())

    @classmethod
    def load(cls, path: Path) -> "RepodeckConfig":
        """Load configuration from a repodeck.yml file. A missing file gives defaults."""
        if not path.exists():
            return cls(source=path)

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at the top level")
        return cls._parse_main_config(data, base_dir=path.parent.resolve(), source=path)

    @classmethod
    def _parse_main_config(
        cls, data: dict[str, Any], base_dir: Path, source: Path | None = None
    ) -> "RepodeckConfig":
        config = cls(source=source)
        config.repos = cls._parse_repos(data.get("repos") or {}, base_dir)
        config.utilities = cls._parse_utilities(data.get("utilities") or [])
        config.wsl_distro = data.get("wsl_distro", "Ubuntu")

        for raw_kind, kind_data in _mapping(data.get("kinds"), "kinds").items():
            kind = RepoKind.parse(raw_kind)
            kind_data = _mapping(kind_data, f"kinds.{raw_kind}")
            current = config.kinds.get(kind, KindConfig())
            config.kinds[kind] = KindConfig(
                skip_directory_check=kind_data.get(
                    "skip_directory_check", current.skip_directory_check
                ),
                command=kind_data.get("command", current.command),
            )

        commands_data = _mapping(data.get("commands"), "commands")
        timeout = commands_data.get("timeout")
        config.commands = CommandsConfig(
            git=commands_data.get("git", "git"),
            gh=commands_data.get("gh", "gh"),
            timeout=None if timeout is None else _number(timeout, float, "commands.timeout"),
            hosts=cls._parse_hosts(commands_data.get("hosts") or []),
        )

        aggregation_data = _mapping(data.get("aggregation"), "aggregation")
        concurrency = _number(aggregation_data.get("concurrency", 1), int, "aggregation.concurrency")
        config.aggregation = AggregationConfig(concurrency=max(1, concurrency))
        return config

    @staticmethod
    def _parse_hosts(raw: Any) -> list[str]:
        if not isinstance(raw, list) or not all(isinstance(host, str) for host in raw):
            raise ConfigError("'commands.hosts' must be a list of host names")
        hosts = [GITHUB_HOST]
        for host in raw:
            host = host.strip().lower()
            if host and host not in hosts:
                hosts.append(host)
        return hosts

    @staticmethod
    def _parse_repos(raw: Any, base_dir: Path) -> list[RepoEntry]:
        # Accept either {name: {path, kind}} or [{name, path, kind}]
        if isinstance(raw, dict):
            items = [{"name": name, **_mapping(value, f"repos.{name}")} for name, value in raw.items()]
        elif isinstance(raw, list):
            items = raw
        else:
            raise ConfigError("'repos' must be a mapping or a list")

        repos: list[RepoEntry] = []
        seen: set[str] = set()
        for item in items:
            if not isinstance(item, dict):
                raise ConfigError(f"Invalid repo entry: {item!r}")
            name = str(item.get("name") or "").strip()
            raw_path = str(item.get("path") or "").strip()
            if not name:
                raise ConfigError(f"Repo entry without a name: {item!r}")
            if not raw_path:
                raise ConfigError(f"Repo '{name}' has no path")
            if name in seen:
                raise ConfigError(f"Duplicate repo name '{name}'")
            seen.add(name)

            kind = RepoKind.parse(item.get("kind") or item.get("type"))
            repos.append(RepoEntry(name=name, path=_resolve_path(raw_path, base_dir, kind), kind=kind))
        return repos

    @staticmethod
    def _parse_utilities(raw: Any) -> list[UtilityEntry]:
        utilities: list[UtilityEntry] = []
        if not isinstance(raw, list):
            raise ConfigError("'utilities' must be a list")
        for item in raw:
            if not isinstance(item, dict) or not item.get("name") or not item.get("command"):
                raise ConfigError(f"Invalid utility entry: {item!r}")
            utilities.append(
                UtilityEntry(
                    name=item["name"],
                    command=item["command"],
                    description=item.get("description", ""),
                    type=item.get("type", "bash"),
                    requires_confirmation=item.get("requires_confirmation", False),
                    requires_admin=item.get("requires_admin", False),
                )
            )
        return utilities


def _mapping(value: Any, key: str) -> dict[str, Any]:
    """An optional section of the file; empty sections read as {}."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {value!r}")
    return value


def _number(value: Any, kind: type, key: str) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{key}' must be a number, got {value!r}") from e


def _resolve_path(raw_path: str, base_dir: Path, kind: RepoKind) -> str:
    # WSL paths live inside the distro and are passed through untouched
    if kind is RepoKind.WSL:
        return raw_path
    path = Path(raw_path).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return str(path.resolve())


def get_config_dir() -> Path:
    return Path.home() / ".repodeck"


def find_config_path(explicit: str | os.PathLike[str] | None = None) -> Path:
    """
    Locate repodeck.yml.

    Order: explicit path, $REPODECK_CONFIG, ./repodeck.yml, ~/.repodeck/repodeck.yml.
    """
    if explicit:
        return Path(explicit).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    local = Path.cwd() / CONFIG_FILENAME
    if local.exists():
        return local
    return get_config_dir() / CONFIG_FILENAME
