import asyncio
import inspect
import uuid
from typing import Awaitable, Callable, Optional, Protocol, Union

import aiohttp

from TabQueue import get_logger, Config

log = get_logger(__name__)

PushHandler = Callable[[dict], Union[None, Awaitable[None]]]


class Transport(Protocol):
    """
    Request/response channel from a page agent to the coordinator.

    ``request`` never raises: delivery failures are reported as
    ``{"ok": False, "error": ...}``.
    """

    context_id: str
    agent_id: str

    async def request(self, message: dict) -> dict:
        ...

    async def listen(self, handler: PushHandler):
        ...

    async def close(self):
        ...


class LocalTransport:
    """In-process channel, the coordinator lives in the same event loop."""

    def __init__(self, coordinator, context_id, agent_id: Optional[str] = None):
        self.coordinator = coordinator
        self.context_id = str(context_id)
        self.agent_id = agent_id or uuid.uuid4().hex
        self._unsubscribe: Optional[Callable[[], None]] = None

    async def request(self, message: dict) -> dict:
        try:
            return await self.coordinator.handle(
                message,
                sender_context_id=self.context_id,
                origin=self.agent_id,
            )
        except Exception as e:
            log.error("local request failed: %s", e)
            return {"ok": False, "error": str(e)}

    async def listen(self, handler: PushHandler):
        self._detach()
        self._unsubscribe = self.coordinator.subscribe(
            self.context_id, handler, subscriber_id=self.agent_id
        )

    def _detach(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def close(self):
        self._detach()


class HttpTransport:
    """Talks to a coordinator served by ``TabQueue.web`` over HTTP + websocket."""

    def __init__(
        self,
        context_id,
        base_url: str = Config.COORDINATOR_URL,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = Config.REQUEST_TIMEOUT,
        agent_id: Optional[str] = None,
    ):
        self.context_id = str(context_id)
        self.base_url = base_url.rstrip("/")
        self.agent_id = agent_id or uuid.uuid4().hex
        self.timeout = aiohttp.ClientTimeout(total=timeout)

        self._session = session
        self._owns_session = session is None
        self._listener: Optional[asyncio.Task] = None

    @property
    def headers(self) -> dict:
        return {"X-Context-Id": self.context_id, "X-Agent-Id": self.agent_id}

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def request(self, message: dict) -> dict:
        session = await self._get_session()
        try:
            async with session.post(
                f"{self.base_url}/message",
                json=message,
                headers=self.headers,
            ) as resp:
                return await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.warning("request %s failed: %s", message.get("type"), e)
            return {"ok": False, "error": str(e) or e.__class__.__name__}

    async def listen(self, handler: PushHandler):
        """Starts a background websocket reader delivering push messages to ``handler``."""
        await self.stop_listening()
        self._listener = asyncio.create_task(self._listen_loop(handler))

    async def _listen_loop(self, handler: PushHandler):
        session = await self._get_session()
        url = f"{self.base_url}/sync/{self.context_id}"

        try:
            async with session.ws_connect(url, headers=self.headers) as ws:
                log.debug("sync channel open: %s", url)
                async for msg in ws:
                    if msg.type != aiohttp.WSMsgType.TEXT:
                        if msg.type == aiohttp.WSMsgType.ERROR:
                            log.warning("sync channel error: %s", ws.exception())
                        continue
                    try:
                        result = handler(msg.json())
                        if inspect.isawaitable(result):
                            await result
                    except Exception as e:
                        log.error("push handler error: %s", e)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("sync channel closed: %s", e)

    async def stop_listening(self):
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None

    async def close(self):
        await self.stop_listening()
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None
