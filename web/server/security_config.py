#!/usr/bin/env python3

"""
Security and logging settings for the web server, read from the environment.
"""

import os


def _split_env(name: str, default: str) -> list:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

ALLOWED_ORIGINS = _split_env(
    "ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000"
)
ALLOWED_HOSTS = _split_env("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver,*")

# Requests per client IP within the window
RATE_LIMIT_WINDOW = int(os.getenv("RATE_LIMIT_WINDOW", "60"))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "120"))

# HTTPS is terminated at the reverse proxy in container deployments
FORCE_HTTPS = os.getenv("FORCE_HTTPS", "false").lower() == "true"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
