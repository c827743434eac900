from aiohttp import web, WSMsgType

from TabQueue import get_logger

LOGGER = get_logger(__name__)

COORDINATOR_KEY = web.AppKey("coordinator")


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"ok": False, "error": message}, status=status)


async def status_page(request: web.Request) -> web.Response:
    return web.Response(text="TabQueue Coordinator is Running")


async def handle_message(request: web.Request) -> web.Response:
    """
    Queue protocol endpoint. The JSON body is the request message,
    ``X-Context-Id`` is the sender identity used when the body carries none.
    """
    try:
        message = await request.json()
    except ValueError:
        return _error(400, "Invalid JSON")

    coordinator = request.app[COORDINATOR_KEY]
    response = await coordinator.handle(
        message,
        sender_context_id=request.headers.get("X-Context-Id"),
        origin=request.headers.get("X-Agent-Id"),
    )
    return web.json_response(response)


async def context_closed(request: web.Request) -> web.Response:
    context_id = request.match_info["context_id"]
    coordinator = request.app[COORDINATOR_KEY]
    return web.json_response(await coordinator.context_closed(context_id))


async def context_add(request: web.Request) -> web.Response:
    context_id = request.match_info["context_id"]

    try:
        payload = await request.json()
    except ValueError:
        return _error(400, "Invalid JSON")

    url = payload.get("url") if isinstance(payload, dict) else None
    if not url:
        return _error(400, "Missing url")

    coordinator = request.app[COORDINATOR_KEY]
    delivered = await coordinator.context_add(context_id, url, payload.get("title"))
    return web.json_response({"ok": True, "delivered": delivered})


async def sync_socket(request: web.Request) -> web.WebSocketResponse:
    context_id = request.match_info["context_id"]
    coordinator = request.app[COORDINATOR_KEY]

    ws = web.WebSocketResponse(heartbeat=30)
    await ws.prepare(request)

    unsubscribe = coordinator.subscribe(
        context_id,
        ws.send_json,
        subscriber_id=request.headers.get("X-Agent-Id"),
    )
    LOGGER.debug("sync socket open: context=%s", context_id)

    try:
        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                LOGGER.warning("sync socket error: %s", ws.exception())
    finally:
        unsubscribe()
        LOGGER.debug("sync socket closed: context=%s", context_id)

    return ws
