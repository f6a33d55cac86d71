from html import escape

from .clock import TICK_SECONDS

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta http-equiv="refresh" content="{refresh_seconds}">
<title>Availability</title>
<style>
body {{ font-family: sans-serif; margin: 12px; }}
header {{ display: flex; justify-content: space-between; }}
.warning {{ color: #c00; }}
.grid {{ display: flex; }}
.hours, .day {{ position: relative; height: {grid_height}px; }}
.hours {{ width: 48px; }}
.day {{ flex: 1; border-left: 1px dotted #999; }}
.day.weekend {{ background: #fdf0f0; }}
.day h2 {{ font-size: 12px; text-align: center; margin: 0; position: absolute; top: -18px; width: 100%; }}
.day.today h2 {{ color: #c00; }}
.line {{ position: absolute; left: 0; right: 0; border-top: 1px dotted #bbb; font-size: 11px; }}
.line.current {{ background: #ffe2b8; height: {row_height}px; }}
.now {{ position: absolute; left: 2px; font-size: 10px; color: #a60; }}
.event {{ position: absolute; left: 2px; right: 2px; overflow: hidden; font-size: 11px;
  border: 1px solid #000; border-radius: 3px; box-sizing: border-box; padding: 1px 3px; }}
.event.confirmed {{ background: #2a5bd7; color: #fff; }}
.event.tentative {{ background: #fff3a0; border-style: dashed; }}
.event.missed {{ background: #f7c1c1; border-style: dashed; }}
.event.current {{ border-width: 2px; }}
.travel {{ font-size: 10px; color: #2a5bd7; text-align: center; }}
</style>
</head>
<body>
<header><strong>{title}</strong><span class="clock" data-epoch="{clock_epoch}" data-offset="{clock_offset}">{clock}</span></header>
{warning}
<div class="grid" style="margin-top: 24px">
<div class="hours">{hour_labels}</div>
{columns}
</div>
<script>
(function () {{
  // Only the clock text ticks; highlights change on the next page refresh.
  var clock = document.querySelector(".clock");
  var skew = Number(clock.dataset.epoch) - Date.now();
  var offset = Number(clock.dataset.offset) * 60000;
  function pad(n) {{ return (n < 10 ? "0" : "") + n; }}
  function tick() {{
    var t = new Date(Date.now() + skew + offset);
    clock.textContent = t.getUTCFullYear() + "-" + pad(t.getUTCMonth() + 1) + "-" + pad(t.getUTCDate()) +
      " " + pad(t.getUTCHours()) + ":" + pad(t.getUTCMinutes()) + ":" + pad(t.getUTCSeconds());
  }}
  setInterval(tick, {tick_ms});
}})();
</script>
</body>
</html>
"""


def event_to_dict(event, row_height):
    occ = event.occurrence
    return {
        "top": event.top(row_height),
        "height": event.height(row_height),
        "top_offset_minutes": event.top_offset_minutes,
        "height_minutes": event.height_minutes,
        "title": occ.title,
        "time": event.time_label,
        "duration": event.duration_label,
        "location": occ.location,
        "note": occ.description,
        "confirmed": occ.confirmed,
        "current": event.is_current,
        "badge": event.badge,
        "start": occ.start.isoformat(),
        "end": occ.end.isoformat(),
    }


def view_to_dict(view):
    days = []
    for column in view.columns:
        days.append({
            "date": column.date.isoformat(),
            "today": column.is_today,
            "hours": [
                {"index": line.index, "hour": line.hour, "offset": line.offset, "current": line.is_current}
                for line in column.hour_lines
            ],
            "current_hour_offset": column.current_hour_offset,
            "current_label": (
                {"offset": column.current_label.offset, "text": column.current_label.text}
                if column.current_label else None
            ),
            "events": [event_to_dict(event, view.row_height) for event in column.events],
            "travel": column.travel,
        })
    return {
        "now": view.now.isoformat(),
        "clock": view.clock_text,
        "feed_ok": view.feed_ok,
        "error": view.error,
        "start_hour": view.window.start_hour,
        "end_hour": view.window.end_hour,
        "row_height": view.row_height,
        "days": days,
    }


def _event_html(event, row_height, show_notes):
    occ = event.occurrence
    classes = ["event", event.badge]
    if event.is_current:
        classes.append("current")
    parts = [
        f"<b>{escape(occ.title)}</b>",
        f"<span>{escape(event.time_label)} ({escape(event.duration_label)})</span>",
    ]
    if occ.location:
        parts.append(f"<span>&#8962; {escape(occ.location)}</span>")
    if show_notes and occ.description:
        parts.append(f"<span>&#9998; {escape(occ.description)}</span>")
    return (
        f'<div class="{" ".join(classes)}" '
        f'style="top: {event.top(row_height):.1f}px; height: {event.height(row_height):.1f}px" '
        f'title="{escape(occ.title)}">{"<br>".join(parts)}</div>'
    )


def _column_html(column, view):
    classes = ["day"]
    if column.is_today:
        classes.append("today")
    if column.date.weekday() >= 5:
        classes.append("weekend")
    body = [f"<h2>{escape(column.label)}</h2>"]
    for line in column.hour_lines:
        cls = "line current" if line.is_current else "line"
        body.append(f'<div class="{cls}" style="top: {line.offset}px"></div>')
    if column.current_label:
        body.append(
            f'<div class="now" style="top: {column.current_label.offset}px">'
            f"{escape(column.current_label.text)}</div>"
        )
    for event in column.events:
        body.append(_event_html(event, view.row_height, view.show_notes))
    if column.travel:
        route = " &rarr; ".join(escape(loc) for loc in column.travel)
        body.append(f'<div class="travel" style="top: {view.window.hours * view.row_height}px">{route}</div>')
    return f'<div class="{" ".join(classes)}">{"".join(body)}</div>'


def render_html(view, refresh_seconds=900):
    hour_labels = "".join(
        f'<div class="line" style="top: {line.offset}px">{line.label}</div>'
        for line in view.columns[0].hour_lines
    )
    warning = ""
    if not view.feed_ok:
        warning = f'<p class="warning">Calendar feed unavailable: {escape(view.error or "unknown error")}</p>'
    return PAGE_TEMPLATE.format(
        refresh_seconds=int(refresh_seconds),
        grid_height=view.window.hours * view.row_height,
        row_height=view.row_height,
        title=escape(view.now.strftime("%d %b %Y")),
        clock=escape(view.clock_text),
        clock_epoch=int(view.now.timestamp() * 1000),
        clock_offset=int(view.now.utcoffset().total_seconds() // 60),
        tick_ms=int(TICK_SECONDS * 1000),
        warning=warning,
        hour_labels=hour_labels,
        columns="\n".join(_column_html(column, view) for column in view.columns),
    )
