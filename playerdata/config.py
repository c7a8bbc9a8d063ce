"""Loading and validation of config.yml."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from playerdata.errors import ConfigLoadError

DEFAULT_CONFIG_PATH = Path("config.yml")
REQUIRED_RENDER_KEYS = ("level", "playerdata", "output")


@dataclass(frozen=True)
class AppConfig:
    level: Path
    playerdata: Path
    output: Path

    stats: Optional[Path] = None
    advancements: Optional[Path] = None
    whitelist: Optional[Path] = None
    banned_players: Optional[Path] = None

    # Seconds between name history requests, 0 disables rate limiting.
    ratelimit: float = 0.0

    basepath: Path = Path(".")


def _resolve(basepath: Path, raw) -> Optional[Path]:
    if raw is None or str(raw).strip() == "":
        return None
    path = Path(str(raw)).expanduser()
    if not path.is_absolute():
        path = basepath / path
    return path


def _get_ratelimit(api_section) -> float:
    if api_section is None:
        return 0.0
    if not isinstance(api_section, dict):
        raise ConfigLoadError("'api' must be a mapping")
    raw = api_section.get("ratelimit", 0)
    if raw is None:
        return 0.0
    if isinstance(raw, bool):
        raise ConfigLoadError(f"api.ratelimit must be a number, got {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ConfigLoadError(f"api.ratelimit must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigLoadError("api.ratelimit must be >= 0")
    return value


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    '''
    Loads config.yml and returns a validated AppConfig.
    Relative paths inside the file are resolved against the directory holding it.

    :param path: Path of the YAML config file.
    :raises ConfigLoadError: if the file can't be read or a required value is missing or invalid.
    '''
    config_path = Path(path).resolve()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigLoadError(f"Could not read {config_path}: {e.strerror}") from e
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigLoadError(f"{config_path} must contain a mapping at the top level")

    render = raw.get("render")
    if not isinstance(render, dict):
        raise ConfigLoadError("Missing 'render' section")

    missing = [key for key in REQUIRED_RENDER_KEYS if not render.get(key)]
    if missing:
        raise ConfigLoadError(f"Missing required render keys: {', '.join('render.' + k for k in missing)}")

    basepath = config_path.parent
    return AppConfig(
        level=_resolve(basepath, render["level"]),
        playerdata=_resolve(basepath, render["playerdata"]),
        output=_resolve(basepath, render["output"]),
        stats=_resolve(basepath, render.get("stats")),
        advancements=_resolve(basepath, render.get("advancements")),
        whitelist=_resolve(basepath, render.get("whitelist")),
        banned_players=_resolve(basepath, render.get("banned-players")),
        ratelimit=_get_ratelimit(raw.get("api")),
        basepath=basepath,
    )
