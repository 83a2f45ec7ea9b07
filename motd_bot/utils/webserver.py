"""
motd_bot/utils/webserver.py
Public web page showing the current message of the day
"""

import html
import logging
from pathlib import Path
from string import Template
from typing import Optional

from aiohttp import web

from ..services.motd_store import MOTDStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>$motd</title>
    <style>
        body {
            font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
            min-height: 100vh;
            margin: 0;
            display: flex;
            align-items: center;
            justify-content: center;
            text-align: center;
        }
        h1 { font-size: 3rem; max-width: 80vw; overflow-wrap: anywhere; }
    </style>
</head>
<body data-last-updated="$last_updated">
    <h1>$motd</h1>
</body>
</html>
""")


class MOTDWebServer:
    def __init__(
        self,
        store: MOTDStore,
        host: str = "127.0.0.1",
        port: int = 4331,
        public_dir: str = "public",
        db_service=None,
    ):
        self.store = store
        self.host = host
        self.port = port
        self.public_dir = Path(public_dir)
        self.db_service = db_service
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self.request_count = 0
        self.setup_routes()

    def setup_routes(self):
        """Setup web server routes"""
        self.app.router.add_get("/", self.handle_root)
        self.app.router.add_get("/last-updated", self.handle_last_updated)
        self.app.router.add_get("/api/motd", self.handle_motd_json)
        self.app.router.add_get("/health", self.handle_health)
        self.app.router.add_get("/{tail:.+}", self.handle_static)

    def _template(self) -> Template:
        index = self.public_dir / "index.html"
        try:
            return Template(index.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return DEFAULT_PAGE

    async def handle_root(self, request: web.Request) -> web.Response:
        """Render the MOTD page"""
        self.request_count += 1
        message, last_updated = self.store.get()
        try:
            page = self._template().safe_substitute(
                motd=html.escape(message), last_updated=str(last_updated)
            )
        except OSError as e:
            logger.error(f"Error reading page template: {e}")
            return web.Response(text="Internal Server Error", status=500)
        return web.Response(text=page, content_type="text/html", charset="utf-8")

    async def handle_last_updated(self, request: web.Request) -> web.Response:
        self.request_count += 1
        return web.Response(text=str(self.store.last_updated), content_type="text/plain")

    async def handle_motd_json(self, request: web.Request) -> web.Response:
        self.request_count += 1
        message, last_updated = self.store.get()
        return web.json_response({"message": message, "last_updated": last_updated})

    async def handle_health(self, request: web.Request) -> web.Response:
        """Health check endpoint"""
        self.request_count += 1
        db_ok = await self.db_service.health_check() if self.db_service else None
        status = "healthy" if db_ok is not False else "degraded"
        payload = {
            "status": status,
            "service": "MOTD web server",
            "requests_served": self.request_count,
            "database": {True: "connected", False: "unavailable", None: "not configured"}[db_ok],
        }
        if self.db_service:
            payload["database_stats"] = self.db_service.get_stats()
        return web.json_response(
            payload,
            status=200 if db_ok is not False else 503,
        )

    async def handle_static(self, request: web.Request) -> web.StreamResponse:
        """Serve files from the public directory"""
        self.request_count += 1
        root = self.public_dir.resolve()
        target = (root / request.match_info["tail"]).resolve()
        if not target.is_relative_to(root) or not target.is_file():
            raise web.HTTPNotFound()
        return web.FileResponse(target)

    async def start(self):
        """Start the web server"""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, self.host, self.port)
            await site.start()
            logger.info(f"Server starting on http://{self.host}:{self.port}")
        except OSError as e:
            logger.error(f"Failed to start web server: {e}")
            raise

    async def stop(self):
        """Stop the web server"""
        logger.info(f"Web server on {self.host}:{self.port} shutting down")
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
