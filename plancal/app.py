import argparse
import asyncio
import logging
import signal
import sys
from datetime import datetime
from pathlib import Path

from .clock import NowTracker
from .config import config_timezone, load_config
from .errors import ConfigError, PlancalError
from .pipeline import build_calendar, render_calendar
from .render import render_image, upload_image

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path(".generated") / "calendar.png"


def summarize(view):
    busy = sum(1 for event in view.events if event.occurrence.confirmed)
    current = [event.occurrence.title for event in view.events if event.is_current]
    text = f"{len(view.events)} events, {busy} confirmed"
    if current:
        text += f", now: {', '.join(current)}"
    if not view.feed_ok:
        text += " (feed unavailable)"
    return text


def cmd_render(args):
    cfg = load_config(args.config)
    now = None
    if args.now:
        try:
            now = datetime.fromisoformat(args.now)
        except ValueError as exc:
            raise ConfigError(f"Invalid --now timestamp: {args.now}") from exc
    view = render_calendar(cfg, now=now)
    img = render_image(view, output_path=args.output)
    if args.upload:
        upload_image(img)
    print(summarize(view))
    return 0


async def watch(config_path=None, output=DEFAULT_OUTPUT, upload=False):
    """Tick the clock every second and rebuild the calendar every ``refresh_minutes``."""
    cfg = load_config(config_path)
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            pass

    tracker = NowTracker(
        tzinfo=config_timezone(cfg),
        on_tick=lambda text: print(f"\r{text}", end="", flush=True),
    )
    ticker = asyncio.create_task(tracker.run(stop))
    try:
        while not stop.is_set():
            cfg = load_config(config_path)
            view = await build_calendar(cfg)
            img = render_image(view, output_path=output)
            if upload:
                await asyncio.to_thread(upload_image, img)
            print(f"\r{view.clock_text}  {summarize(view)}")
            try:
                await asyncio.wait_for(stop.wait(), timeout=cfg["refresh_minutes"] * 60)
            except asyncio.TimeoutError:
                continue
    finally:
        stop.set()
        await ticker


def cmd_watch(args):
    asyncio.run(watch(args.config, output=args.output, upload=args.upload))
    return 0


def cmd_serve(args):
    from .server import serve

    serve(args.host, args.port, config_path=args.config)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(prog="plancal", description="Availability calendar from an ICS feed")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render the calendar once")
    render.add_argument("--output", type=Path, default=DEFAULT_OUTPUT)
    render.add_argument("--upload", action="store_true", help="Push the image to the Inky display")
    render.add_argument("--now", help="Render as if it were this ISO timestamp")
    render.set_defaults(func=cmd_render)

    watch_cmd = sub.add_parser("watch", help="Keep the clock ticking and refresh periodically")
    watch_cmd.add_argument("--output", type=Path, default=DEFAULT_OUTPUT)
    watch_cmd.add_argument("--upload", action="store_true")
    watch_cmd.set_defaults(func=cmd_watch)

    serve_cmd = sub.add_parser("serve", help="Serve the calendar over HTTP")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)
    serve_cmd.set_defaults(func=cmd_serve)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except PlancalError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
