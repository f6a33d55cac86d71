import logging
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from .utils import PALETTE_IMAGE, Palette, text_size, truncate_text

logger = logging.getLogger(__name__)

EXPECTED_W = 800
EXPECTED_H = 480

BADGE_COLORS = {
    "confirmed": Palette.BLUE,
    "tentative": Palette.YELLOW,
    "missed": Palette.RED,
}


def load_fonts():
    # Fall back to the default bitmap font if truetype is unavailable
    try:
        return {
            "sub": ImageFont.truetype("DejaVuSans.ttf", 20),
            "body": ImageFont.truetype("DejaVuSans.ttf", 13),
            "meta": ImageFont.truetype("DejaVuSans.ttf", 12),
        }
    except OSError:
        default = ImageFont.load_default()
        return {"sub": default, "body": default, "meta": default}


def line_height(draw, font):
    try:
        return sum(font.getmetrics())
    except AttributeError:
        return text_size(draw, "Ag", font)[1]


def text_color_for(bg):
    if bg in (Palette.YELLOW, Palette.WHITE):
        return Palette.BLACK
    return Palette.WHITE


def draw_dither_line(draw, x0, y0, x1, y1, color, step=2):
    if x0 == x1:
        y_start = min(y0, y1)
        y_end = max(y0, y1)
        for y in range(y_start, y_end + 1, step):
            draw.point((x0, y), fill=color)
        return
    if y0 == y1:
        x_start = min(x0, x1)
        x_end = max(x0, x1)
        for x in range(x_start, x_end + 1, step):
            draw.point((x, y0), fill=color)
        return
    draw.line((x0, y0, x1, y1), fill=color)


def draw_dither_rect(draw, x0, y0, x1, y1, color, step=2):
    for y in range(y0, y1 + 1, step):
        for x in range(x0 + (y // step) % 2, x1 + 1, step * 2):
            draw.point((x, y), fill=color)


def draw_event_card(draw, x, y, w, h, text, bg, font, current=False, radius=3):
    fg = text_color_for(bg)
    width = 2 if current else 1
    draw.rounded_rectangle((x, y, x + w, y + h), radius=radius, fill=bg, outline=Palette.BLACK, width=width)
    max_width = max(0, w - 6)
    line_h = line_height(draw, font)
    max_lines = max(1, min(2, (h - 2) // max(1, line_h)))
    words = str(text).split()
    if not words:
        return
    lines = []
    current_line = words[0]
    for word in words[1:]:
        candidate = f"{current_line} {word}"
        if text_size(draw, candidate, font)[0] <= max_width:
            current_line = candidate
        else:
            lines.append(current_line)
            current_line = word
            if len(lines) >= max_lines:
                break
    if len(lines) < max_lines and current_line:
        lines.append(current_line)
    lines = [truncate_text(draw, line, max_width, font=font) for line in lines[:max_lines]]
    for idx, line in enumerate(lines):
        draw.text((x + 3, y + 1 + idx * line_h), line, fg, font=font)


def card_box(top, height, grid_bottom, min_h):
    # cards keep a readable minimum height but never cross the grid bottom
    y = int(top) + 1
    h = max(min_h, int(height) - 2)
    return y, min(h, grid_bottom - y)


def draw_calendar(draw, bbox, view, fonts):
    font_sub = fonts["sub"]
    font_body = fonts["body"]
    font_meta = fonts["meta"]
    window = view.window

    x0, y0, x1, y1 = bbox
    pad = 12
    width = x1 - x0 - (pad * 2)

    date_text = view.now.strftime("%d %b").upper()
    draw.text((x0 + pad, y0 + pad), date_text, Palette.BLACK, font=font_sub)
    clock_w, _ = text_size(draw, view.clock_text, font_sub)
    draw.text((x1 - pad - clock_w, y0 + pad), view.clock_text, Palette.BLACK, font=font_sub)
    if not view.feed_ok:
        warning = "FEED UNAVAILABLE"
        warn_w, _ = text_size(draw, warning, font_sub)
        draw.text((x0 + (x1 - x0 - warn_w) // 2, y0 + pad), warning, Palette.RED, font=font_sub)

    header_h = line_height(draw, font_sub) + 4
    day_label_h = line_height(draw, font_meta) + 4
    grid_top = y0 + pad + header_h + day_label_h
    grid_bottom = y1 - pad
    grid_h = max(1, grid_bottom - grid_top)
    hour_h = max(1, grid_h // window.hours)
    scale = hour_h / view.row_height

    time_col_w = text_size(draw, f"{window.end_hour:02d}:00", font_meta)[0] + 6
    day_area_w = max(1, width - time_col_w)
    col_w = max(1, day_area_w // len(view.columns))

    for idx, column in enumerate(view.columns):
        col_x = x0 + pad + time_col_w + idx * col_w
        if column.date.weekday() >= 5:
            draw_dither_rect(draw, col_x, grid_top, col_x + col_w, grid_bottom, Palette.RED)
        if column.current_hour_offset is not None:
            y_hour = grid_top + int(column.current_hour_offset * scale)
            draw_dither_rect(draw, col_x + 1, y_hour, col_x + col_w - 1, y_hour + hour_h, Palette.ORANGE)
        label = truncate_text(draw, column.label, col_w - 2, font_meta)
        label_w, _ = text_size(draw, label, font_meta)
        label_color = Palette.RED if column.is_today else Palette.BLACK
        draw.text((col_x + max(0, (col_w - label_w) // 2), y0 + pad + header_h), label, label_color, font=font_meta)
        if idx > 0:
            draw_dither_line(draw, col_x, grid_top, col_x, grid_bottom, Palette.BLACK)

    for line in view.columns[0].hour_lines:
        y_line = grid_top + int(line.offset * scale)
        draw.text((x0 + pad, y_line - 6), line.label, Palette.BLACK, font=font_meta)
        draw_dither_line(draw, x0 + pad + time_col_w, y_line, x1 - pad, y_line, Palette.BLACK)
    y_end = grid_top + window.hours * hour_h
    draw_dither_line(draw, x0 + pad + time_col_w, y_end, x1 - pad, y_end, Palette.BLACK)

    for idx, column in enumerate(view.columns):
        col_x = x0 + pad + time_col_w + idx * col_w
        for event in column.events:
            y, h = card_box(
                grid_top + event.top(hour_h),
                event.height(hour_h),
                grid_bottom,
                line_height(draw, font_body) + 2,
            )
            if h <= 0:
                continue
            draw_event_card(
                draw,
                col_x + 2,
                y,
                col_w - 4,
                h,
                event.occurrence.title,
                BADGE_COLORS.get(event.badge, Palette.WHITE),
                font_body,
                current=event.is_current,
            )


def render_image(view, output_path=None, size=(EXPECTED_W, EXPECTED_H)):
    w, h = size
    img = Image.new("P", (w, h))
    img.putpalette(PALETTE_IMAGE.getpalette())
    draw = ImageDraw.Draw(img)
    draw.rectangle((0, 0, w - 1, h - 1), Palette.WHITE)
    draw_calendar(draw, (0, 0, w - 1, h - 1), view, load_fonts())

    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        img.convert("RGB").save(output_path, format="PNG")
        logger.info("Wrote %s", output_path)
    return img


def upload_image(img):
    from inky.auto import auto

    inky = auto()
    if inky.resolution != img.size:
        logger.warning("expected %sx%s, got %sx%s", *img.size, *inky.resolution)
        img = img.resize(inky.resolution)
    inky.set_image(img)
    inky.show()
