#!/usr/bin/env python3
"""
Startup script for the Slack AI relay.
"""

import uvicorn
from app.config import get_settings

if __name__ == "__main__":
    settings = get_settings()

    print("Starting Slack AI relay...")
    print(f"Host: {settings.host}")
    print(f"Port: {settings.port}")
    print(f"Debug: {settings.debug}")
    print(f"Environment: {settings.environment}")
    print(f"Log Level: {settings.log_level}")
    print("-" * 50)

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
