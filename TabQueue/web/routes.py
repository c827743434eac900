from aiohttp import web
from .views import (
    status_page,
    handle_message,
    context_closed,
    context_add,
    sync_socket,
)


def setup_routes(app: web.Application):
    app.router.add_get("/", status_page)
    app.router.add_post("/message", handle_message)
    app.router.add_delete("/contexts/{context_id}", context_closed)
    app.router.add_post("/contexts/{context_id}/add", context_add)
    app.router.add_get("/sync/{context_id}", sync_socket)
