"""
Entry point for running the chat server with uvicorn.

Host and port come from the HOST and PORT settings (environment variables).
On SIGINT/SIGTERM every connected client receives `server-shutdown` and is
closed with code 1001 before uvicorn stops accepting and closing sockets.
"""

if __name__ == "__main__":
    from socketchat import application
    from socketchat.server import serve
    from socketchat.settings import app_settings

    serve(application(), host=app_settings.HOST, port=app_settings.PORT)
