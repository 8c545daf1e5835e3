# src/inputs/inputs.py
"""
Settings loader for the listing feed sync.

Goals
-----
- Deterministic, file-first settings with validation via Pydantic.
- Every option has a working default, so an empty or missing file is valid.
- Minimal environment-variable overrides for CI/cron convenience.

Supported JSON shape
--------------------
   {
     "feed":    { "url": "...", "timeout_s": 30, "max_bytes": 52428800, ... FeedPolicy ... },
     "store":   { "backend": "json", "data_dir": "data" },
     "logging": { "level": "INFO", "file": null },
     "source":  "xml_feed",
     "currency": "EUR"
   }

Environment overrides (optional)
--------------------------------
- FEEDSYNC_FEED_URL    -> feed.url
- FEEDSYNC_TIMEOUT_S   -> feed.timeout_s (float)
- FEEDSYNC_MAX_BYTES   -> feed.max_bytes (int)
- FEEDSYNC_STORE       -> store.backend ("json" | "memory")
- FEEDSYNC_DATA_DIR    -> store.data_dir
- FEEDSYNC_SOURCE      -> source
- FEEDSYNC_LOG_LEVEL   -> logging.level
- FEEDSYNC_LOG_FILE    -> logging.file

Public API
----------
- class SettingsLoader:
    - load(path: str | Path | None) -> ImporterSettings
    - load_json(text: str) -> ImporterSettings
    - with_overrides(cfg, **kwargs) -> ImporterSettings (non-destructive copies)
- function load_settings(path: str | Path | None) -> ImporterSettings  (convenience)

Notes
-----
- This module *does not* hit the network; all settings are local.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.schemas.models import FeedPolicy

logger = logging.getLogger(__name__)

StoreBackend = Literal["json", "memory"]
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# ----------------------------
# Pydantic models for settings
# ----------------------------


class StoreOptions(BaseModel):
    """Which persistence backend the import job writes to."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    backend: StoreBackend = Field("json", description='Store backend: "json" or "memory".')
    data_dir: Path = Field(Path("data"), description="Directory holding properties.json (json backend).")


class LoggingOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    level: str = Field("INFO", description="Root log level.")
    file: Path | None = Field(None, description="Optional rotating log file.")

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {v!r}")
        return level


class ImporterSettings(BaseModel):
    """
    Full settings payload.

    Attributes:
        feed:     Fetch policy (URL, timeout, size cap, archive).
        store:    Persistence backend options.
        logging:  Log level and optional file.
        source:   Value stamped into CanonicalProperty.source.
        currency: Currency code stamped into every record.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    feed: FeedPolicy = FeedPolicy()
    store: StoreOptions = StoreOptions()
    logging: LoggingOptions = LoggingOptions()
    source: str = Field("xml_feed", min_length=1)
    currency: str = Field("EUR", min_length=3, max_length=3)


# ----------------------------
# Loader
# ----------------------------


@dataclass(frozen=True)
class SettingsLoader:
    """
    File-first settings loader with light env overrides.

    Default search (when path=None):
        1) ./config.json
        2) built-in defaults
    """

    env_prefix: str = "FEEDSYNC_"

    # ---------- Public API ----------

    def load(self, path: str | Path | None = None) -> ImporterSettings:
        """
        Load settings from a JSON file (path). If path is None, try ./config.json,
        falling back to defaults.
        """
        p = self._resolve_path(path)
        raw = self._read_json_file(p) if p is not None else {}
        cfg = self._parse_root(raw)
        return self._apply_env_overrides(cfg)

    def load_json(self, text: str) -> ImporterSettings:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON payload: {e}") from e
        if not isinstance(raw, dict):
            raise ValueError("Settings payload must be a JSON object.")
        cfg = self._parse_root(raw)
        return self._apply_env_overrides(cfg)

    def with_overrides(
        self,
        cfg: ImporterSettings,
        *,
        url: str | None = None,
        backend: str | None = None,
        data_dir: str | Path | None = None,
        log_level: str | None = None,
    ) -> ImporterSettings:
        """
        Return a *new* ImporterSettings with provided non-null overrides applied.
        Does not mutate the original instance.
        """
        feed_updates: dict[str, Any] = {}
        store_updates: dict[str, Any] = {}
        log_updates: dict[str, Any] = {}
        if url is not None:
            feed_updates["url"] = url
        if backend is not None:
            store_updates["backend"] = backend
        if data_dir is not None:
            store_updates["data_dir"] = Path(data_dir)
        if log_level is not None:
            log_updates["level"] = log_level
        return self._merge(cfg, feed_updates, store_updates, log_updates, {})

    # ---------- Internals ----------

    def _resolve_path(self, path: str | Path | None) -> Path | None:
        if path is not None:
            p = Path(path)
            if not p.exists():
                raise FileNotFoundError(f"Settings file not found: {p}")
            return p

        default = Path("config.json")
        return default if default.exists() else None

    def _read_json_file(self, p: Path) -> dict[str, Any]:
        if p.suffix.lower() != ".json":
            raise ValueError(f"Unsupported settings format for {p.name}; only .json is supported.")
        try:
            raw = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {p}: {e}") from e
        if not isinstance(raw, dict):
            raise ValueError(f"Settings in {p} must be a JSON object.")
        return cast(dict[str, Any], raw)

    def _parse_root(self, data: dict[str, Any]) -> ImporterSettings:
        try:
            return ImporterSettings.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Settings validation failed:\n{e}") from e

    def _apply_env_overrides(self, cfg: ImporterSettings) -> ImporterSettings:
        """
        Apply light, optional overrides from environment variables.
        Unparseable numbers are ignored (the validated file value is kept).
        """
        prefix = self.env_prefix
        feed: dict[str, Any] = {}
        store: dict[str, Any] = {}
        log: dict[str, Any] = {}
        root: dict[str, Any] = {}

        url = os.getenv(f"{prefix}FEED_URL")
        if url:
            feed["url"] = url

        timeout = os.getenv(f"{prefix}TIMEOUT_S")
        if timeout:
            try:
                value = float(timeout)
                if value > 0:
                    feed["timeout_s"] = value
            except ValueError:
                logger.warning("Ignoring non-numeric %sTIMEOUT_S=%r", prefix, timeout)

        max_bytes = os.getenv(f"{prefix}MAX_BYTES")
        if max_bytes:
            try:
                value_i = int(max_bytes)
                if value_i > 0:
                    feed["max_bytes"] = value_i
            except ValueError:
                logger.warning("Ignoring non-numeric %sMAX_BYTES=%r", prefix, max_bytes)

        backend = os.getenv(f"{prefix}STORE")
        if backend:
            normalized = backend.strip().lower()
            if normalized in ("json", "memory"):
                store["backend"] = normalized

        data_dir = os.getenv(f"{prefix}DATA_DIR")
        if data_dir:
            store["data_dir"] = Path(data_dir)

        source = os.getenv(f"{prefix}SOURCE")
        if source:
            root["source"] = source

        level = os.getenv(f"{prefix}LOG_LEVEL")
        if level and level.strip().upper() in LOG_LEVELS:
            log["level"] = level.strip().upper()

        log_file = os.getenv(f"{prefix}LOG_FILE")
        if log_file:
            log["file"] = Path(log_file)

        return self._merge(cfg, feed, store, log, root)

    def _merge(
        self,
        cfg: ImporterSettings,
        feed: dict[str, Any],
        store: dict[str, Any],
        log: dict[str, Any],
        root: dict[str, Any],
    ) -> ImporterSettings:
        if not (feed or store or log or root):
            return cfg
        # Re-validate so overrides obey the same constraints as file values
        data = cfg.model_dump()
        data["feed"].update(feed)
        data["store"].update(store)
        data["logging"].update(log)
        data.update(root)
        return self._parse_root(data)


# ----------------------------
# Convenience function
# ----------------------------


def load_settings(path: str | Path | None = None) -> ImporterSettings:
    """Convenience wrapper for one-shot callers."""
    return SettingsLoader().load(path)
