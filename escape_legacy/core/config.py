from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
import yaml


CONFIG_FILENAME = "escape_legacy.yaml"
CONFIG_ENV_VAR = "ESCAPE_LEGACY_CONFIG"
DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "content" / "catalog.yaml"


@dataclass(frozen=True)
class GameConfig:
    save_path: str
    catalog_path: str
    audit_path: str
    log_level: str = "WARNING"


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")
    with p.open("r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"{p} must contain a mapping at the top level")
    return raw


def _resolve_relative(value: str, base_dir: Path) -> str:
    if Path(value).is_absolute():
        return value
    return str((base_dir / value).resolve())


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"config section {name} must be a mapping")
    return section


def default_config(base_dir: Path | None = None) -> GameConfig:
    base = base_dir or Path.cwd()
    return GameConfig(
        save_path=str((base / "escape_legacy.db").resolve()),
        catalog_path=str(DEFAULT_CATALOG_PATH),
        audit_path=str((base / "escape_legacy_audit.jsonl").resolve()),
    )


def load_game_config(path: str | Path) -> GameConfig:
    config_path = Path(path).resolve()
    raw = load_yaml(config_path)
    base_dir = config_path.parent

    save_path = _section(raw, "saves").get("path", "./escape_legacy.db")
    catalog_path = _section(raw, "catalog").get("path")
    audit_path = _section(raw, "audit").get("path", "./escape_legacy_audit.jsonl")
    log_level = str(_section(raw, "logging").get("level", "WARNING")).upper()

    return GameConfig(
        save_path=_resolve_relative(save_path, base_dir),
        catalog_path=_resolve_relative(catalog_path, base_dir) if catalog_path else str(DEFAULT_CATALOG_PATH),
        audit_path=_resolve_relative(audit_path, base_dir),
        log_level=log_level,
    )


def resolve_config_path(config_path: str | None) -> Path | None:
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        return path

    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        env_candidate = Path(env_path)
        if env_candidate.exists():
            return env_candidate

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate

    return None


def load_config(config_path: str | None = None) -> GameConfig:
    resolved = resolve_config_path(config_path)
    if resolved is None:
        return default_config()
    return load_game_config(resolved)
