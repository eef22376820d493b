"""
App assembly entry point.

Re-exports the FastAPI ``app`` from ``billing.api.main``; running this
module serves it with uvicorn on SERVER_HOST:PORT.
"""

from billing.api.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn

    from billing.utils.runtime import server_host, server_port

    uvicorn.run(app, host=server_host(), port=server_port())
