"""Entry point for serving the todo app via uvicorn."""

import os
from typing import Any, Dict

import uvicorn
from dotenv import load_dotenv


def build_uvicorn_config() -> Dict[str, Any]:
    host = os.environ.get("TODO_SYNC_HOST", "127.0.0.1")
    port = int(os.environ.get("TODO_SYNC_PORT", "8000"))
    log_level = os.environ.get("TODO_SYNC_LOG_LEVEL", "info")
    return {"host": host, "port": port, "log_level": log_level}


def main() -> None:
    load_dotenv()
    uvicorn.run("todo_sync.main:app", **build_uvicorn_config())


if __name__ == "__main__":
    main()
