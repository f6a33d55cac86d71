import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from io import BytesIO
from urllib.parse import parse_qs, urlparse

from .config import CALENDAR_SCHEMA, CONFIG_VERSION, load_config, normalize_config, resolve_timezone, save_config
from .errors import ConfigError
from .markup import render_html, view_to_dict
from .pipeline import render_calendar
from .render import render_image

logger = logging.getLogger(__name__)


class CalendarHandler(BaseHTTPRequestHandler):
    config_path = None

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

    def _read_json(self):
        length = int(self.headers.get("Content-Length", "0"))
        if length <= 0:
            return None
        data = self.rfile.read(length)
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return None

    def _send(self, body, content_type, status=200):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-cache")
        self.end_headers()
        self.wfile.write(body)

    def _send_json(self, payload, status=200):
        self._send(json.dumps(payload).encode("utf-8"), "application/json", status=status)

    def _render_view(self):
        cfg = load_config(self.config_path)
        return cfg, render_calendar(cfg)

    def do_GET(self):
        parsed = urlparse(self.path)
        path = parsed.path
        try:
            if path in ("/", "/index.html"):
                cfg, view = self._render_view()
                html = render_html(view, refresh_seconds=cfg["refresh_minutes"] * 60)
                return self._send(html.encode("utf-8"), "text/html; charset=utf-8")
            if path == "/calendar.png":
                _, view = self._render_view()
                buffer = BytesIO()
                render_image(view).convert("RGB").save(buffer, format="PNG")
                return self._send(buffer.getvalue(), "image/png")
            if path == "/api/calendar":
                _, view = self._render_view()
                return self._send_json(view_to_dict(view))
            if path == "/api/config":
                params = parse_qs(parsed.query)
                payload = {"config": load_config(self.config_path)}
                if params.get("schema", ["0"])[0] in ("1", "true"):
                    payload["schema"] = CALENDAR_SCHEMA
                return self._send_json(payload)
        except ConfigError as exc:
            return self._send_json({"error": str(exc)}, status=400)
        except Exception:
            logger.exception("Failed to handle %s", self.path)
            return self._send_json({"error": "Internal error"}, status=500)
        return self._send_json({"error": "Not found"}, status=404)

    def do_POST(self):
        if self.path.startswith("/api/config"):
            payload = self._read_json()
            if not isinstance(payload, dict):
                return self._send_json({"error": "Invalid JSON"}, status=400)
            cfg = normalize_config(payload)
            cfg["version"] = CONFIG_VERSION
            try:
                resolve_timezone(cfg["tz"])
            except ConfigError as exc:
                return self._send_json({"error": str(exc)}, status=400)
            try:
                save_config(cfg, self.config_path)
            except OSError:
                logger.exception("Failed to save config")
                return self._send_json({"error": "Failed to save config"}, status=500)
            return self._send_json({"ok": True, "config": cfg})
        return self._send_json({"error": "Not found"}, status=404)


def make_server(host="127.0.0.1", port=8000, config_path=None):
    handler = type("BoundCalendarHandler", (CalendarHandler,), {"config_path": config_path})
    return ThreadingHTTPServer((host, port), handler)


def serve(host="127.0.0.1", port=8000, config_path=None):
    server = make_server(host, port, config_path)
    logger.info("Serving on http://%s:%s", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
