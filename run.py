#!/usr/bin/env python3
"""Run script for Flex Calendar."""

import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "flexcalendar.api.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("DEBUG", "False").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "info"),
    )
