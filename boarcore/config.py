"""Configuration loading and validation for boarcore.

Configuration files are JSON or YAML documents with the sections ``paths``,
``numbers``, ``rarities``, ``items``, ``powerups``, ``leaderboards`` and
``quests``. Everything is validated here so the rest of the package can rely
on well-formed, immutable objects.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .models import ItemDefinition, RarityTier
from .utils import int_from_env, path_from_env

logger = logging.getLogger("boarcore.config")

DEFAULT_CONFIG_PATH = Path("boarcore_config.yml")

ONE_DAY_MS = 86_400_000


class ConfigError(Exception):
    """Raised when a configuration document is missing or inconsistent."""


@dataclass(frozen=True)
class PathConfig:
    database_folder: Path = Path("data")
    global_data_folder: str = "global"
    guild_data_folder: str = "guilds"
    item_data_file: str = "items.json"
    leaderboards_file: str = "leaderboards.json"
    banned_users_file: str = "banned_users.json"
    powerup_data_file: str = "powerups.json"
    quest_data_file: str = "quests.json"
    github_file: str = "github.json"

    @property
    def global_dir(self) -> Path:
        return self.database_folder / self.global_data_folder

    @property
    def guild_dir(self) -> Path:
        return self.database_folder / self.guild_data_folder


@dataclass(frozen=True)
class NumberConfig:
    one_day: int = ONE_DAY_MS
    miracle_increase_max: int = 300
    quest_slots: int = 7


@dataclass(frozen=True)
class BotConfig:
    rarities: Tuple[RarityTier, ...]
    items: Mapping[str, ItemDefinition]
    powerups: Tuple[str, ...] = ()
    leaderboards: Tuple[str, ...] = ()
    quests: Tuple[str, ...] = ()
    paths: PathConfig = field(default_factory=PathConfig)
    numbers: NumberConfig = field(default_factory=NumberConfig)


def _read_document(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file {path} not found.")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in (".yml", ".yaml"):
            payload = yaml.safe_load(text)
        else:
            payload = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ConfigError(f"Config {path} must be a mapping at the top level.")
    return payload


def _string_list(raw: object, section: str) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ConfigError(f"`{section}` must be a list.")
    values = [str(item).strip() for item in raw if str(item).strip()]
    if len(set(values)) != len(values):
        raise ConfigError(f"`{section}` contains duplicate entries.")
    return tuple(values)


def _parse_items(raw: object) -> Dict[str, ItemDefinition]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigError("`items` must be a mapping of item ID to flags.")
    items: Dict[str, ItemDefinition] = {}
    for key, entry in raw.items():
        item_id = str(key)
        flags = entry if isinstance(entry, Mapping) else {}
        items[item_id] = ItemDefinition(
            item_id=item_id,
            blacklisted=bool(flags.get("blacklisted", False)),
            is_sb=bool(flags.get("is_sb", False)),
        )
    return items


def _parse_rarities(raw: object) -> Tuple[RarityTier, ...]:
    if not isinstance(raw, Mapping) or not raw:
        raise ConfigError("`rarities` must be a non-empty mapping of tier key to settings.")
    tiers = []
    for key, entry in raw.items():
        if not isinstance(entry, Mapping):
            raise ConfigError(f"Rarity `{key}` must be a mapping.")
        try:
            weight = float(entry.get("weight", 0))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Rarity `{key}` has an invalid weight: {entry.get('weight')!r}") from exc
        if weight <= 0:
            raise ConfigError(f"Rarity `{key}` must have a positive weight.")
        tiers.append(
            RarityTier(
                key=str(key),
                weight=weight,
                from_daily=bool(entry.get("from_daily", True)),
                items=_string_list(entry.get("items", []), f"rarities.{key}.items"),
            )
        )
    return tuple(tiers)


def validate_config(config: BotConfig) -> None:
    """Check cross-section invariants, raising ``ConfigError`` on the first problem."""
    seen: Dict[str, str] = {}
    for tier in config.rarities:
        if tier.weight <= 0:
            raise ConfigError(f"Rarity `{tier.key}` must have a positive weight.")
        for item_id in tier.items:
            if item_id in seen:
                raise ConfigError(f"Item `{item_id}` appears in both `{seen[item_id]}` and `{tier.key}`.")
            if item_id not in config.items:
                raise ConfigError(f"Rarity `{tier.key}` lists unknown item `{item_id}`.")
            seen[item_id] = tier.key

    orphaned = sorted(set(config.items) - set(seen))
    if orphaned:
        logger.warning("Items without a rarity will never be drawn: %s", ", ".join(orphaned))

    if config.numbers.one_day <= 0:
        raise ConfigError("`numbers.one_day` must be positive.")
    if config.numbers.quest_slots < 0:
        raise ConfigError("`numbers.quest_slots` cannot be negative.")
    if len(config.quests) < config.numbers.quest_slots:
        raise ConfigError(
            f"Need at least {config.numbers.quest_slots} quests to fill a rotation, "
            f"only {len(config.quests)} configured."
        )


def parse_config(payload: Mapping[str, Any], *, base_dir: Optional[Path] = None) -> BotConfig:
    paths_raw = payload.get("paths") or {}
    numbers_raw = payload.get("numbers") or {}
    if not isinstance(paths_raw, Mapping) or not isinstance(numbers_raw, Mapping):
        raise ConfigError("`paths` and `numbers` must be mappings.")

    paths = PathConfig()
    path_overrides = {key: value for key, value in paths_raw.items() if key in PathConfig.__dataclass_fields__}
    if path_overrides:
        if "database_folder" in path_overrides:
            folder = Path(str(path_overrides["database_folder"])).expanduser()
            if not folder.is_absolute() and base_dir is not None:
                folder = base_dir / folder
            path_overrides["database_folder"] = folder
        paths = replace(paths, **path_overrides)

    try:
        numbers = NumberConfig(
            **{key: int(value) for key, value in numbers_raw.items() if key in NumberConfig.__dataclass_fields__}
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid `numbers` section: {exc}") from exc

    config = BotConfig(
        rarities=_parse_rarities(payload.get("rarities")),
        items=_parse_items(payload.get("items")),
        powerups=_string_list(payload.get("powerups"), "powerups"),
        leaderboards=_string_list(payload.get("leaderboards"), "leaderboards"),
        quests=_string_list(payload.get("quests"), "quests"),
        paths=paths,
        numbers=numbers,
    )
    validate_config(config)
    return config


def load_bot_config(path: Path) -> BotConfig:
    """Load a JSON or YAML config file into a validated ``BotConfig``."""
    payload = _read_document(path)
    config = parse_config(payload, base_dir=path.resolve().parent)
    logger.info(
        "Loaded config %s (%d rarities, %d items, %d powerups, %d boards, %d quests).",
        path,
        len(config.rarities),
        len(config.items),
        len(config.powerups),
        len(config.leaderboards),
        len(config.quests),
    )
    return config


def config_path_from_env() -> Path:
    return path_from_env("BOARCORE_CONFIG_PATH") or DEFAULT_CONFIG_PATH


def apply_env_overrides(config: BotConfig) -> BotConfig:
    """Apply ``BOARCORE_*`` environment overrides on top of a loaded config."""
    data_dir = path_from_env("BOARCORE_DATA_DIR")
    paths = replace(config.paths, database_folder=data_dir) if data_dir else config.paths
    numbers = replace(
        config.numbers,
        miracle_increase_max=int_from_env("BOARCORE_MIRACLE_INCREASE_MAX", config.numbers.miracle_increase_max),
    )
    return replace(config, paths=paths, numbers=numbers)


__all__ = [
    "BotConfig",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "NumberConfig",
    "ONE_DAY_MS",
    "PathConfig",
    "apply_env_overrides",
    "config_path_from_env",
    "load_bot_config",
    "parse_config",
    "validate_config",
]
