import json
import logging
import os
from datetime import date, datetime
from pathlib import Path

from .errors import ConfigError
from .utils import get_env
from .window import VisibleWindow

logger = logging.getLogger(__name__)

CONFIG_VERSION = 1

DEFAULT_CALENDAR_CONFIG = {
    "feed_url": "",
    "feed_path": "",
    "tz": "",
    "start_date": None,
    "num_days": 15,
    "min_hour": 6,
    "max_hour": 22,
    "row_height": 40,
    "fetch_timeout": 10,
    "refresh_minutes": 15,
    "show_notes": True,
}

CALENDAR_SCHEMA = {
    "feed_url": {"type": "string", "label": "iCal URL", "placeholder": "https://.../schedule.ics"},
    "feed_path": {"type": "string", "label": "Local .ics path", "placeholder": "/path/to/schedule.ics"},
    "tz": {"type": "string", "label": "Timezone"},
    "start_date": {"type": "date", "label": "First Day", "help": "Leave empty to start today."},
    "num_days": {"type": "number", "label": "Days Shown", "min": 1, "max": 31},
    "min_hour": {"type": "number", "label": "Grid Start Hour", "min": 0, "max": 23},
    "max_hour": {"type": "number", "label": "Grid End Hour", "min": 1, "max": 24},
    "row_height": {"type": "number", "label": "Hour Row Height", "min": 8, "max": 200},
    "fetch_timeout": {"type": "number", "label": "Fetch Timeout (s)", "min": 0, "max": 300},
    "refresh_minutes": {"type": "number", "label": "Refresh Every (min)", "min": 1, "max": 1440},
    "show_notes": {"type": "boolean", "label": "Show Notes"},
}


def config_path():
    return Path(os.environ.get("PLANCAL_CONFIG") or Path.cwd() / "config.json")


def default_config():
    return {"version": CONFIG_VERSION, **DEFAULT_CALENDAR_CONFIG}


def _int_option(value, default, low, high):
    try:
        value = int(value)
    except (TypeError, ValueError):
        value = default
    return max(low, min(high, value))


def _timeout_option(value, default=10.0):
    # None, empty and zero all mean "no timeout"
    if value in (None, ""):
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        return default
    return timeout if timeout > 0 else None


def _parse_start_date(value):
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(str(value)).isoformat()
    except ValueError:
        logger.warning("Invalid start_date %r, using today", value)
        return None


def normalize_config(payload):
    cfg = default_config()
    for key in DEFAULT_CALENDAR_CONFIG:
        if key in payload:
            cfg[key] = payload[key]

    cfg["feed_url"] = str(cfg.get("feed_url") or "").strip()
    cfg["feed_path"] = str(cfg.get("feed_path") or "").strip()
    cfg["tz"] = str(cfg.get("tz") or "").strip()
    cfg["start_date"] = _parse_start_date(cfg.get("start_date"))
    cfg["num_days"] = _int_option(cfg["num_days"], 15, 1, 31)
    cfg["min_hour"] = _int_option(cfg["min_hour"], 6, 0, 23)
    cfg["max_hour"] = _int_option(cfg["max_hour"], 22, cfg["min_hour"] + 1, 24)
    cfg["row_height"] = _int_option(cfg["row_height"], 40, 8, 200)
    cfg["refresh_minutes"] = _int_option(cfg["refresh_minutes"], 15, 1, 1440)
    cfg["fetch_timeout"] = _timeout_option(cfg["fetch_timeout"])
    cfg["show_notes"] = bool(cfg.get("show_notes"))
    return cfg


def load_config(path=None):
    path = Path(path) if path else config_path()
    if not path.exists():
        return default_config()
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as exc:
        logger.warning("Could not read config %s: %s", path, exc)
        return default_config()
    if not isinstance(data, dict):
        logger.warning("Config %s is not a JSON object, using defaults", path)
        return default_config()
    return normalize_config(data)


def save_config(cfg, path=None):
    path = Path(path) if path else config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent=2))
    return path


def feed_location(cfg):
    """Feed URL or local path, with environment overrides for unset values."""
    url = cfg.get("feed_url") or get_env("PLANCAL_FEED_URL") or ""
    if url:
        return url
    return cfg.get("feed_path") or ""


def resolve_timezone(name):
    if not name:
        return datetime.now().astimezone().tzinfo
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone: {name}") from exc


def config_timezone(cfg):
    return resolve_timezone(cfg.get("tz") or get_env("PLANCAL_TZ"))


def build_window(cfg, now):
    """Visible window for ``cfg`` anchored at ``now`` unless a start date is pinned."""
    start = cfg.get("start_date")
    start_date = date.fromisoformat(start) if start else now.date()
    return VisibleWindow(
        start_date=start_date,
        num_days=cfg["num_days"],
        start_hour=cfg["min_hour"],
        end_hour=cfg["max_hour"],
        tzinfo=now.tzinfo,
    )
