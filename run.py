"""
Uvicorn server runner for the Slack bot and dashboard API.

Usage:
    python run.py

Environment variables (set in .env file):
    DEBUG=true - Enable debug logging and auto-reload
    PORT=8000 - Set server port (default: 8000)
    HOST=127.0.0.1 - Set server host (default: 127.0.0.1)
"""

import os

import uvicorn
from legacy_ops.config import get_settings

if __name__ == "__main__":
    settings = get_settings()

    # HOST and PORT come from the environment so Render can set PORT
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    log_level = "debug" if settings.debug else "info"

    print(f"Starting {settings.app_name} server...")
    print(f"Host: {host}")
    print(f"Port: {port}")
    print(f"Log Level: {log_level}")
    print(f"Slack events: http://{host}:{port}/slack/events")
    print(f"Dashboard API: http://{host}:{port}/api/dashboard")

    uvicorn.run(
        "legacy_ops.main:app",
        host=host,
        port=port,
        reload=settings.debug,
        log_level=log_level,
        access_log=True,
    )
