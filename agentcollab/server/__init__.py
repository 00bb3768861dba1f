"""
agentcollab server - HTTP surface for the collaboration system.

Run with:
    agentcollab-server              # CLI entry point
    python -m agentcollab.server    # Module entry point

Or programmatically:
    from agentcollab.server import AgentCollabServer
    server = AgentCollabServer(port=8000)
    server.run()
"""

from .app import AgentCollabServer, create_app
from .config import ServerConfig

__all__ = [
    "create_app",
    "AgentCollabServer",
    "ServerConfig",
]
