from aiohttp import web
from .routes import setup_routes
from .middleware import cors_middleware
from .views import COORDINATOR_KEY


def create_app(coordinator):
    app = web.Application(middlewares=[cors_middleware])
    app[COORDINATOR_KEY] = coordinator
    setup_routes(app)
    return app


async def start_server(coordinator, host: str = "0.0.0.0", port: int = 8000):
    app = create_app(coordinator)

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, host, port)
    await site.start()

    return runner


async def stop_server(runner: web.AppRunner):
    if runner is not None:
        await runner.cleanup()
