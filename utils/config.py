# utils/config.py
"""
Bot configuration: which guild the bot serves, the delegate/staff/chair roles
and the committees (name, role, private channel).

The file is JSON. IDs are stored as decimal strings and turned into ints on
load; the resulting objects are frozen and shared by every running command.
"""
import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from utils.logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = "config.json"
MAX_SNOWFLAKE = 2 ** 64 - 1


class ConfigError(Exception):
    """Raised when the configuration file is missing or malformed."""


@dataclass(frozen=True)
class Committee:
    name: str
    role_id: int
    channel_id: int

    def matches(self, query: str, role_name: Optional[str] = None) -> bool:
        """Case-insensitive match against the committee name or its role's name."""
        query = query.strip().lower()
        if query == self.name.lower():
            return True
        return role_name is not None and query == role_name.lower()


@dataclass(frozen=True)
class Configuration:
    token: str
    guild_id: int
    delegate_role_id: int
    staff_role_id: int
    chair_role_id: int
    committees: Tuple[Committee, ...]

    @property
    def committee_role_ids(self) -> Tuple[int, ...]:
        return tuple(c.role_id for c in self.committees)


def parse_id(value: Any, field: str) -> int:
    """Parse a decimal-string Discord ID into an int."""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ConfigError(f"'{field}' must be a decimal string, got {type(value).__name__}")
    text = str(value).strip()
    if not text.isdigit():
        raise ConfigError(f"'{field}' is not a valid ID: {value!r}")
    parsed = int(text)
    if not 0 < parsed <= MAX_SNOWFLAKE:
        raise ConfigError(f"'{field}' is out of range: {value!r}")
    return parsed


def _require(data: Dict[str, Any], key: str, where: str = "config") -> Any:
    if key not in data:
        raise ConfigError(f"{where} is missing '{key}'")
    return data[key]


def parse_config(data: Any, token_override: Optional[str] = None) -> Configuration:
    if not isinstance(data, dict):
        raise ConfigError("config root must be an object")

    raw_committees = _require(data, "committees")
    if not isinstance(raw_committees, list) or not raw_committees:
        raise ConfigError("'committees' must be a non-empty list")

    committees = []
    seen = set()
    for index, raw in enumerate(raw_committees):
        where = f"committees[{index}]"
        if not isinstance(raw, dict):
            raise ConfigError(f"{where} must be an object")
        name = str(_require(raw, "name", where)).strip()
        if not name:
            raise ConfigError(f"{where} has an empty name")
        if name.lower() in seen:
            raise ConfigError(f"duplicate committee name: {name!r}")
        seen.add(name.lower())
        committees.append(Committee(
            name=name,
            role_id=parse_id(_require(raw, "role_id", where), f"{where}.role_id"),
            channel_id=parse_id(_require(raw, "channel_id", where), f"{where}.channel_id"),
        ))

    token = token_override or data.get("token") or ""
    if not str(token).strip():
        raise ConfigError("no bot token configured (set 'token' or DISCORD_TOKEN)")

    return Configuration(
        token=str(token).strip(),
        guild_id=parse_id(_require(data, "guild_id"), "guild_id"),
        delegate_role_id=parse_id(_require(data, "delegate_role_id"), "delegate_role_id"),
        staff_role_id=parse_id(_require(data, "staff_role_id"), "staff_role_id"),
        chair_role_id=parse_id(_require(data, "chair_role_id"), "chair_role_id"),
        committees=tuple(committees),
    )


def load_config(path: Optional[str] = None) -> Configuration:
    """Load the configuration file. Any problem is fatal and raised as ConfigError."""
    path = path or os.getenv("BOT_CONFIG", DEFAULT_CONFIG_PATH)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"missing config file: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid config file {path}: {e}") from e

    config = parse_config(data, token_override=os.getenv("DISCORD_TOKEN"))
    logger.info("Loaded config from %s (%d committees)", path, len(config.committees))
    return config
