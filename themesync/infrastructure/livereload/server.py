"""
Local live-reload server: proxied storefront pages plus a reload socket
"""
import asyncio
import uuid
from http import HTTPStatus
from typing import Optional

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.http11 import Request, Response

from ...core.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    RELOAD_CLIENT_SCRIPT,
    WEBSOCKET_GREETING,
)
from ...core.exceptions import ThemeSyncError
from ...core.interfaces import ReloadSignal
from ...core.logging import get_logger
from ...core.tasks import Err
from ..api import ThemeAPIClient
from ..state import LocalDataStore

logger = get_logger(__name__)


def inject_reload_script(html: str, script: str = RELOAD_CLIENT_SCRIPT) -> str:
    """Insert script right before the last </body>, or append it"""
    index = html.lower().rfind("</body>")
    if index == -1:
        return html + script
    return html[:index] + script + html[index:]


class LiveReloadServer(ReloadSignal):
    """
    One port, two roles.

    - Plain HTTP requests: the same path is fetched from the storefront and
      returned with the reload script injected.
    - WebSocket upgrades: the connecting page takes the single client slot
      and receives a greeting. Reloading closes that connection; the page
      reloads itself when its socket closes.
    """

    def __init__(
        self,
        api: ThemeAPIClient,
        local_data: LocalDataStore,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
    ):
        self.api = api
        self.local_data = local_data
        self.host = host
        self.port = port
        self._server: Optional[Server] = None
        self._client: Optional[ServerConnection] = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def has_client(self) -> bool:
        return self._client is not None

    # --------------------
    # Lifecycle
    # --------------------
    async def start(self) -> None:
        """
        Bind and start serving.

        Raises:
            ThemeSyncError: If the port cannot be bound
        """
        try:
            self._server = await serve(
                self._handle_socket,
                self.host,
                self.port,
                process_request=self._process_request,
            )
        except OSError as e:
            raise ThemeSyncError(f"Cannot listen on {self.host}:{self.port}: {e}") from e
        logger.info(f"Live-reload server listening on {self.url}")

    async def aclose(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        self._client = None

    # --------------------
    # Reload signal
    # --------------------
    async def reload(self, log_kind: str, key: str) -> None:
        client = self._client
        if client is None:
            logger.info(f"No browser connected, reload after {log_kind} {key} skipped")
            return
        self._client = None
        logger.debug(f"Reloading browser after {log_kind} {key}")
        await client.close()

    # --------------------
    # Handlers
    # --------------------
    async def _handle_socket(self, connection: ServerConnection) -> None:
        # Latest page wins the slot
        self._client = connection
        logger.debug(f"Browser connected from {connection.remote_address}")
        await connection.send(WEBSOCKET_GREETING)
        await connection.wait_closed()
        if self._client is connection:
            self._client = None

    async def _process_request(
        self, connection: ServerConnection, request: Request
    ) -> Optional[Response]:
        if request.headers.get("Upgrade", "").lower() == "websocket":
            return None

        scratch = self.local_data.page_cache_path()
        scratch = scratch.with_name(f"{uuid.uuid4().hex[:8]}-{scratch.name}")
        try:
            outcome = await self.api.fetch_remote_page_html(request.path, scratch)
            if isinstance(outcome, Err):
                return connection.respond(
                    HTTPStatus.BAD_GATEWAY, f"Storefront request failed: {outcome.reason}\n"
                )
            html = await asyncio.to_thread(
                scratch.read_text, encoding="utf-8", errors="replace"
            )
        except OSError as e:
            logger.error(f"Cannot read fetched page {scratch}: {e}")
            return connection.respond(HTTPStatus.INTERNAL_SERVER_ERROR, f"{e}\n")
        finally:
            self.local_data.discard(scratch)

        response = connection.respond(HTTPStatus.OK, inject_reload_script(html))
        del response.headers["Content-Type"]
        response.headers["Content-Type"] = "text/html; charset=utf-8"
        return response
