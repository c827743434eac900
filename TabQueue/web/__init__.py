from .server import create_app, start_server, stop_server
from .views import COORDINATOR_KEY

__all__ = ("create_app", "start_server", "stop_server", "COORDINATOR_KEY")
