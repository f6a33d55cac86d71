import os
from datetime import datetime
from pathlib import Path

from PIL import Image


class Palette:
    """Colour indices of the seven-colour Inky panel."""

    BLACK = 0
    WHITE = 1
    BLUE = 3
    RED = 4
    YELLOW = 5
    ORANGE = 6


# RGB per panel index; index 2 (green) is unused here but keeps the
# hardware order intact.
PANEL_RGB = (
    (0, 0, 0),
    (255, 255, 255),
    (0, 128, 0),
    (0, 0, 255),
    (255, 0, 0),
    (255, 255, 0),
    (255, 165, 0),
)


def build_palette_image(colors=PANEL_RGB):
    flat = [channel for rgb in colors for channel in rgb]
    flat += [0] * (768 - len(flat))
    image = Image.new("P", (1, 1))
    image.putpalette(flat)
    return image


PALETTE_IMAGE = build_palette_image()


_ENV_CACHE = None
_ENV_MTIME = None


def env_path():
    return Path(os.environ.get("PLANCAL_ENV_FILE") or Path.cwd() / ".env")


def _read_env_file(path):
    if not path.exists():
        return {}
    try:
        lines = path.read_text().splitlines()
    except OSError:
        return {}
    data = {}
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        data[key.strip()] = value.strip()
    return data


def get_env(key, default=None):
    value = os.environ.get(key)
    if value is not None:
        return value
    global _ENV_CACHE, _ENV_MTIME
    path = env_path()
    try:
        mtime = (str(path), path.stat().st_mtime)
    except OSError:
        _ENV_CACHE = {}
        _ENV_MTIME = None
        return default
    if _ENV_CACHE is None or _ENV_MTIME != mtime:
        _ENV_CACHE = _read_env_file(path)
        _ENV_MTIME = mtime
    return _ENV_CACHE.get(key, default)


def text_size(draw, text, font):
    bbox = draw.textbbox((0, 0), text, font=font)
    return bbox[2] - bbox[0], bbox[3] - bbox[1]


def truncate_text(draw, text, max_width, font):
    if text_size(draw, text, font)[0] <= max_width:
        return text
    if max_width <= 0:
        return ""
    ellipsis = "…"
    cut = text
    while cut and text_size(draw, cut + ellipsis, font)[0] > max_width:
        cut = cut[:-1]
    return cut + ellipsis if cut else ""


def format_time(dt):
    if isinstance(dt, datetime):
        return dt.strftime("%H:%M")
    return ""


def format_duration(minutes):
    minutes = max(0, int(minutes))
    return f"{minutes // 60:02d}:{minutes % 60:02d}h"
