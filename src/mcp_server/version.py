"""Server identity reported in ``initialize`` and ``/health``."""

SERVER_NAME = "dataforseo-mcp-server"
__version__ = "2.2.0"
