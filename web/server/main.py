#!/usr/bin/env python3

import sys
import os
from pathlib import Path
from typing import Optional

# Add the project root to the path (before importing shared)
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

# Load environment variables using shared loader
from shared.env_loader import load_component_env

# Load from component directory (e.g., web/server/.env)
component_dir = Path(__file__).parent
load_component_env(component_dir)

# Now continue with imports

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.middleware.httpsredirect import HTTPSRedirectMiddleware
from contextlib import asynccontextmanager
import uvicorn
import logging
from datetime import datetime, timezone
import time

from web.server.security_config import (
    ALLOWED_ORIGINS, ALLOWED_HOSTS, RATE_LIMIT_WINDOW, RATE_LIMIT_MAX_REQUESTS,
    FORCE_HTTPS, SECURITY_HEADERS, LOG_LEVEL, LOG_FORMAT
)

# Import API routes
from web.server.api import claims, places
from web.server.api.errors import register_error_handlers

from shared.review_sentiment.config import get_cached_settings
from shared.review_sentiment.exceptions import ConfigurationError
from shared.review_sentiment.service import ReviewSentimentService
from shared.review_sentiment.storage import ClaimStorage

# Configure logging with file output only (uvicorn handles console)
log_dir = Path(os.getenv("LOG_DIR", "/tmp/review-sentiment-logs"))
log_dir.mkdir(exist_ok=True, parents=True)
log_file = log_dir / "web_server.log"

file_handler = logging.FileHandler(log_file)
formatter = logging.Formatter(LOG_FORMAT)
file_handler.setFormatter(formatter)

# Only add the file handler to the root logger to avoid duplicate console output
root_logger = logging.getLogger()
root_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
if not any(isinstance(h, logging.FileHandler) and h.baseFilename == str(log_file) for h in root_logger.handlers):
    root_logger.addHandler(file_handler)

logger = logging.getLogger(__name__)
logger.info(f"Logging to file: {log_file}")

# Simple rate limiting storage
request_counts = {}


def check_rate_limit(client_ip: str) -> bool:
    """Simple fixed-window rate limiting per client IP."""
    global request_counts
    current_time = time.time()

    # Clean old entries
    request_counts = {ip: (count, timestamp) for ip, (count, timestamp) in request_counts.items()
                      if current_time - timestamp < RATE_LIMIT_WINDOW}

    if client_ip not in request_counts:
        request_counts[client_ip] = (1, current_time)
        return True

    count, timestamp = request_counts[client_ip]
    if count >= RATE_LIMIT_MAX_REQUESTS:
        return False

    request_counts[client_ip] = (count + 1, timestamp)
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app."""
    logger.info("Starting up Review Sentiment Dashboard...")
    settings = get_cached_settings()

    service: Optional[ReviewSentimentService] = None
    try:
        service = ReviewSentimentService.from_settings(settings)
        logger.info(
            f"Review sentiment service ready (source={service.source.get_source_name()}, "
            f"model={settings.llm_model}, mock_llm={settings.use_mock_llm})"
        )
    except ConfigurationError as e:
        # Endpoints answer 500 "API key is not configured" until restarted with keys
        logger.error(f"Review sentiment service not configured: {e}")
    places.set_service(service)

    claim_store = ClaimStorage(Path(settings.claims_db_path))
    claims.set_claim_store(claim_store)
    logger.info(f"Claim storage at {settings.claims_db_path}")

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down Review Sentiment Dashboard...")
    if service is not None:
        await service.aclose()
    claim_store.close()
    places.set_service(None)
    claims.set_claim_store(None)


app = FastAPI(
    title="Review Sentiment Dashboard",
    description="Customer review sentiment aggregation for business locations",
    version="1.0.0",
    lifespan=lifespan
)

register_error_handlers(app)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers[header] = value
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    client_ip = request.client.host if request.client else "unknown"
    logger.info(
        f"{request.method} {request.url.path} - "
        f"{response.status_code} - {process_time:.3f}s - {client_ip}"
    )
    return response


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    client_ip = request.client.host if request.client else "unknown"

    if not check_rate_limit(client_ip):
        logger.warning(f"Rate limit exceeded for IP: {client_ip}")
        return JSONResponse(
            status_code=429,
            content={"error": "Too many requests. Please try again later."}
        )

    return await call_next(request)


app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=ALLOWED_HOSTS
)

# Note: In Docker deployments, HTTPS termination happens at reverse proxy level
if FORCE_HTTPS:
    app.add_middleware(HTTPSRedirectMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

# Claims first: /places/claimed and /places/claim must win over /places/{place_id}
app.include_router(claims.router, prefix="/api", tags=["claims"])
app.include_router(places.router, prefix="/api", tags=["places"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service_configured": places.get_service() is not None,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


if __name__ == "__main__":
    uvicorn.run(
        "web.server.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        log_level="info"
    )
