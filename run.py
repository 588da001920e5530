#!/usr/bin/env python3
"""
Local development server for the sheet form service
"""

import os

import uvicorn

from sheetform.core.config import settings


if __name__ == "__main__":
    port = int(os.getenv("PORT", 8000))
    host = "0.0.0.0" if settings.is_production else "127.0.0.1"

    print(f"Starting {settings.PROJECT_NAME} on http://{host}:{port}")
    print(f"Data directory: {settings.DATA_DIR}")
    uvicorn.run(
        "sheetform.main:app",
        host=host,
        port=port,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.is_development,
    )
