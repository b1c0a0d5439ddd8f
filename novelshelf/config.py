"""Configuration model and loaders for novelshelf.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `NovelshelfConfig`: normalized settings for one catalog session.
- `ConfigLoader`: static construction helpers for `NovelshelfConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .parsing import normalize_optional_string, parse_positive_float

_DEFAULT_LIBRARY_DIR = Path("library")
_DEFAULT_MANIFEST_NAME = "manifest.json"
_DEFAULT_LOG_LEVEL = "INFO"
_SUPPORTED_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR"})


@dataclass(frozen=True, slots=True)
class NovelshelfConfig:
    """Runtime configuration for one catalog session.

    Attributes:
        library_dir: Directory holding locally imported book records.
        publishing_root: Base URL or directory of the published manifest, or `None`
            to disable remote books.
        manifest_name: Manifest file name below the publishing root.
        fetch_timeout_seconds: Per-request timeout for remote fetches; `None` waits
            indefinitely.
        log_level: Minimum level of emitted catalog log lines.
    """

    library_dir: Path = _DEFAULT_LIBRARY_DIR
    publishing_root: str | None = None
    manifest_name: str = _DEFAULT_MANIFEST_NAME
    fetch_timeout_seconds: float | None = None
    log_level: str = _DEFAULT_LOG_LEVEL

    def validate(self) -> None:
        """Validate configuration values before a session starts."""

        if not str(self.library_dir).strip():
            raise ValueError("`library_dir` must be a non-empty path.")
        if not self.manifest_name.strip():
            raise ValueError("`manifest_name` must be a non-empty string.")
        if self.fetch_timeout_seconds is not None and self.fetch_timeout_seconds <= 0:
            raise ValueError("`fetch_timeout_seconds` must be a positive number of seconds.")
        if self.log_level not in _SUPPORTED_LOG_LEVELS:
            levels = ", ".join(sorted(_SUPPORTED_LOG_LEVELS))
            raise ValueError(f"`log_level` must be one of: {levels}.")


class ConfigLoader:
    """Factory methods for creating `NovelshelfConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "library_dir",
            "publishing_root",
            "manifest_name",
            "fetch_timeout_seconds",
            "log_level",
        }
    )

    @staticmethod
    def from_yaml(path: Path) -> NovelshelfConfig:
        """Create a validated config from a YAML file."""

        path_text = path.read_text(encoding="utf-8")
        payload = ConfigLoader._parse_yaml_payload(path_text, path)
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> NovelshelfConfig:
        """Create a validated config from environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env

        library_dir = ConfigLoader._optional_env_string(env_map, "NOVELSHELF_LIBRARY_DIR")
        manifest_name = ConfigLoader._optional_env_string(env_map, "NOVELSHELF_MANIFEST_NAME")
        raw_timeout = ConfigLoader._optional_env_string(env_map, "NOVELSHELF_FETCH_TIMEOUT")
        log_level = ConfigLoader._optional_env_string(env_map, "NOVELSHELF_LOG_LEVEL")

        fetch_timeout_seconds = None
        if raw_timeout is not None:
            try:
                fetch_timeout_seconds = parse_positive_float(
                    raw_timeout, "NOVELSHELF_FETCH_TIMEOUT"
                )
            except ValueError as exc:
                raise ValueError(f"Environment variable {exc}") from exc

        config = NovelshelfConfig(
            library_dir=Path(library_dir) if library_dir is not None else _DEFAULT_LIBRARY_DIR,
            publishing_root=ConfigLoader._optional_env_string(
                env_map, "NOVELSHELF_PUBLISHING_ROOT"
            ),
            manifest_name=manifest_name or _DEFAULT_MANIFEST_NAME,
            fetch_timeout_seconds=fetch_timeout_seconds,
            log_level=(log_level or _DEFAULT_LOG_LEVEL).upper(),
        )
        config.validate()
        return config

    @staticmethod
    def _parse_yaml_payload(raw_text: str, path: Path) -> Mapping[str, Any]:
        """Parse YAML text and enforce a mapping root payload."""

        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` is not valid YAML: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return payload

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> NovelshelfConfig:
        """Build a validated config from a normalized mapping payload."""

        ConfigLoader._validate_yaml_keys(payload, source_label)

        library_dir = normalize_optional_string(payload.get("library_dir"))
        manifest_name = normalize_optional_string(payload.get("manifest_name"))
        log_level = normalize_optional_string(payload.get("log_level"))
        fetch_timeout_seconds = ConfigLoader._optional_positive_float(
            payload, "fetch_timeout_seconds", source_label
        )

        config = NovelshelfConfig(
            library_dir=Path(library_dir) if library_dir is not None else _DEFAULT_LIBRARY_DIR,
            publishing_root=normalize_optional_string(payload.get("publishing_root")),
            manifest_name=manifest_name or _DEFAULT_MANIFEST_NAME,
            fetch_timeout_seconds=fetch_timeout_seconds,
            log_level=(log_level or _DEFAULT_LOG_LEVEL).upper(),
        )
        config.validate()
        return config

    @staticmethod
    def _validate_yaml_keys(payload: Mapping[str, Any], source_label: str) -> None:
        """Reject keys the config does not know about."""

        unknown = sorted(
            str(key) for key in set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS)
        )
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

    @staticmethod
    def _optional_positive_float(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> float | None:
        """Read and validate an optional positive number payload field."""

        raw_value = payload.get(key)
        if normalize_optional_string(raw_value) is None:
            return None
        try:
            return parse_positive_float(raw_value, key)
        except ValueError as exc:
            raise ValueError(f"{source_label} field {exc}") from exc

    @staticmethod
    def _optional_env_string(env: Mapping[str, str], key: str) -> str | None:
        """Read and normalize optional string environment variable values."""

        if key not in env:
            return None
        return normalize_optional_string(env.get(key))
