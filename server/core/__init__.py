from .connection import ConnectionContext
from .connection_manager import ConnectionManager
from .router import CommandRouter
from .server import SocketServer

__all__ = ["ConnectionContext", "ConnectionManager", "CommandRouter", "SocketServer"]
