"""HTTP status endpoints and WebSocket heartbeat on a single port."""

import asyncio
import json
import logging
import resource
import sys
import time
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Optional, Tuple
from urllib.parse import urlsplit

from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosed

from .. import __version__

logger = logging.getLogger(__name__)

SERVICE_NAME = "WealthNode"
ENDPOINTS = ["/health", "/status"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def memory_usage() -> dict:
    """Peak resident set size of this process."""
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # macOS reports bytes, Linux reports kilobytes
    if sys.platform == "darwin":
        max_rss //= 1024
    return {"max_rss_kb": max_rss}


class StatusServer:
    """
    Status server for the trading node.

    Plain GET requests are answered with JSON status documents. Requests
    that ask for a WebSocket upgrade get a greeting followed by a
    heartbeat every heartbeat_interval seconds until they disconnect.
    """

    def __init__(self, config, engine=None):
        """
        Initialize status server.

        Args:
            config: Server configuration (host, port, heartbeat_interval)
            engine: TradingEngine whose health is reported (optional)
        """
        self.config = config
        self.engine = engine
        self.heartbeat_interval = config.heartbeat_interval

        self._started = time.monotonic()
        self._server = None

    @property
    def port(self) -> Optional[int]:
        """Bound port, useful when listening on port 0."""
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    def uptime(self) -> float:
        return time.monotonic() - self._started

    def is_degraded(self) -> bool:
        return self.engine is not None and self.engine.health.degraded

    def trading_health(self) -> dict:
        if self.engine is None:
            return {"running": False, "degraded": False}
        return self.engine.health.to_dict()

    def route(self, path: str) -> Tuple[HTTPStatus, dict]:
        """Build the response for an HTTP GET path."""
        if path == "/":
            return HTTPStatus.OK, {
                "status": f"{SERVICE_NAME} Node Running",
                "name": SERVICE_NAME,
                "version": __version__,
                "endpoints": ENDPOINTS,
                "mode": self.config.execution_mode.value,
            }

        if path == "/health":
            return HTTPStatus.OK, {
                "status": "degraded" if self.is_degraded() else "healthy",
                "timestamp": _now_iso(),
                "uptime": self.uptime(),
                "trading": self.trading_health(),
            }

        if path == "/status":
            payload = {
                "status": "degraded" if self.is_degraded() else "running",
                "timestamp": _now_iso(),
                "uptime": self.uptime(),
                "version": __version__,
                "mode": self.config.execution_mode.value,
                "memory": memory_usage(),
            }
            if self.engine is not None:
                payload.update(self.engine.get_status())
            else:
                payload["trading"] = self.trading_health()
            return HTTPStatus.OK, payload

        return HTTPStatus.NOT_FOUND, {"error": "not found", "path": path}

    def _process_request(self, connection, request):
        """Answer plain HTTP requests; let WebSocket upgrades through."""
        if request.headers.get("Upgrade", "").lower() == "websocket":
            return None

        path = urlsplit(request.path).path
        status, payload = self.route(path)

        response = connection.respond(status, json.dumps(payload) + "\n")
        del response.headers["Content-Type"]
        response.headers["Content-Type"] = "application/json"
        return response

    def greeting(self) -> dict:
        return {
            "type": "connected",
            "message": f"{SERVICE_NAME} Connected",
            "time": _now_iso(),
        }

    def heartbeat(self) -> dict:
        return {
            "type": "heartbeat",
            "timestamp": _now_iso(),
            "status": "degraded" if self.is_degraded() else "active",
        }

    async def _send_heartbeats(self, websocket):
        """Send heartbeats until the connection closes."""
        try:
            while True:
                await asyncio.sleep(self.heartbeat_interval)
                await websocket.send(json.dumps(self.heartbeat()))
        except ConnectionClosed:
            pass

    async def _handle_connection(self, websocket):
        """Greet a WebSocket client and keep it fed with heartbeats."""
        logger.info(f"New WebSocket connection from {websocket.remote_address}")
        heartbeat_task = None
        try:
            await websocket.send(json.dumps(self.greeting()))
            heartbeat_task = asyncio.create_task(self._send_heartbeats(websocket))

            # Inbound messages are not supported and are discarded
            async for _ in websocket:
                pass
        except ConnectionClosed:
            pass
        finally:
            if heartbeat_task is not None:
                heartbeat_task.cancel()
            logger.info(f"WebSocket connection closed: {websocket.remote_address}")

    async def start(self):
        """Bind and start listening."""
        if self._server is not None:
            raise RuntimeError("Status server already started")

        self._server = await serve(
            self._handle_connection,
            self.config.host,
            self.config.port,
            process_request=self._process_request,
        )

        logger.info(f"Dashboard: http://{self.config.host}:{self.port}")
        logger.info(f"WebSocket: ws://{self.config.host}:{self.port}")

    async def stop(self):
        """Close listeners and all open connections."""
        if self._server is None:
            return

        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("Status server stopped")
