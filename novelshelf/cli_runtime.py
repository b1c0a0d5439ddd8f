"""CLI runtime helpers.

This module isolates config resolution, import candidate reading, and catalog
session lifecycle from the command wiring layer.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import replace
import mimetypes
from pathlib import Path
from typing import AsyncIterator, Sequence

from .catalog.merger import CatalogMerger
from .config import ConfigLoader, NovelshelfConfig
from .errors import CatalogStageError, StoreError
from .io.remote_catalog import RemoteCatalogLoader
from .io.storage import LocalBookStore
from .models.datatypes import ImportCandidate
from .parsing import normalize_optional_string
from .telemetry.logger import CatalogLogger


def _load_yaml_config(config_path: Path) -> NovelshelfConfig:
    """Load a YAML config file and map failures to stage errors."""

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise CatalogStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise CatalogStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config keys/values and rerun.",
        ) from exc
    except OSError as exc:
        raise CatalogStageError(
            stage="config",
            detail=f"Failed to read config file `{config_path}`: {exc}",
            hint="Verify file permissions.",
        ) from exc


def resolve_config(
    config_file: Path | None,
    library_dir: Path | None,
    publishing_root: str | None,
) -> NovelshelfConfig:
    """Resolve effective config: CLI options > YAML file (or environment) > defaults."""

    if config_file is not None:
        base_config = _load_yaml_config(config_file)
    else:
        try:
            base_config = ConfigLoader.from_env()
        except ValueError as exc:
            raise CatalogStageError(
                stage="config",
                detail=f"Invalid environment configuration: {exc}",
                hint="Fix or unset the `NOVELSHELF_*` variables and rerun.",
            ) from exc

    resolved = base_config
    if library_dir is not None:
        resolved = replace(resolved, library_dir=library_dir)
    normalized_root = normalize_optional_string(publishing_root)
    if normalized_root is not None:
        resolved = replace(resolved, publishing_root=normalized_root)
    return resolved


def read_import_candidates(
    paths: Sequence[Path], logger: CatalogLogger
) -> list[ImportCandidate]:
    """Read files into import candidates with a guessed declared MIME type.

    Unreadable or non-UTF-8 files are logged and skipped.
    """

    candidates: list[ImportCandidate] = []
    for path in paths:
        mime_type, _ = mimetypes.guess_type(path.name)
        try:
            text = path.read_bytes().decode("utf-8-sig")
        except UnicodeDecodeError:
            logger.log_skipped("import-read", reason="not-utf8", file=path.name)
            continue
        except OSError as exc:
            logger.log_skipped("import-read", reason=type(exc).__name__, file=path.name)
            continue
        candidates.append(ImportCandidate(file_name=path.name, mime_type=mime_type, text=text))
    return candidates


@asynccontextmanager
async def catalog_session(
    config: NovelshelfConfig, logger: CatalogLogger
) -> AsyncIterator[CatalogMerger]:
    """Open the local store, load the merged catalog, and close the store on exit."""

    try:
        store = await LocalBookStore.open(config.library_dir, logger=logger)
    except StoreError as exc:
        raise CatalogStageError(
            stage="store-open",
            detail=str(exc),
            hint="Check that `--library-dir` points to a writable directory.",
        ) from exc

    try:
        loader = RemoteCatalogLoader(
            config.publishing_root,
            manifest_name=config.manifest_name,
            timeout_seconds=config.fetch_timeout_seconds,
            logger=logger,
        )
        merger = CatalogMerger(store, loader, logger=logger)
        await merger.load()
        yield merger
    finally:
        await store.close()
