import asyncio

from TabQueue import setup_logging, get_logger, __title__, __version__, Config
from TabQueue.helpers.coordinator import QueueCoordinator
from TabQueue.helpers.database import get_store
from TabQueue.web.server import start_server, stop_server


async def main():
    setup_logging()
    logger = get_logger(__name__)
    logger.info("Starting %s version %s...", __title__, __version__)

    if Config.STORE_BACKEND == "json":
        store = get_store("json", file_path=Config.STORE_PATH)
    else:
        store = get_store(Config.STORE_BACKEND)

    coordinator = QueueCoordinator(store)
    logger.info("Queue store ready | backend=%s", Config.STORE_BACKEND)

    runner = await start_server(coordinator, host=Config.HOST, port=Config.PORT)
    logger.info("Coordinator listening on %s:%s", Config.HOST, Config.PORT)

    try:
        await asyncio.Event().wait()
    finally:
        await stop_server(runner)
        logger.info("Coordinator stopped")


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
