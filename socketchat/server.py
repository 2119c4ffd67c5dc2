"""
Uvicorn server for the chat application.

Uvicorn closes every open connection (WebSocket close 1012) before it runs
the application's lifespan shutdown, so a shutdown notice sent from the
lifespan hook would reach nobody. `ChatServer` notifies and closes the chat
connections first, then lets uvicorn continue its normal shutdown.
"""

import socket

import uvicorn
from fastapi import FastAPI

from socketchat.logging import logger


class ChatServer(uvicorn.Server):
    """
    Uvicorn server that drains the chat room before shutting down.

    Args:
        config: Uvicorn configuration.
        app: The chat application whose broadcast router is drained.
    """

    def __init__(self, config: uvicorn.Config, app: FastAPI) -> None:
        super().__init__(config)
        self.chat_app = app

    async def shutdown(self, sockets: list[socket.socket] | None = None) -> None:
        logger.info("Received shutdown signal, notifying connected clients...")
        await self.chat_app.state.broadcast_router.shutdown()
        await super().shutdown(sockets=sockets)


def serve(app: FastAPI, host: str, port: int) -> None:
    """Run the application until SIGINT/SIGTERM."""
    config = uvicorn.Config(app, host=host, port=port)
    ChatServer(config, app).run()
