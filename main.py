"""
Backend entry point.

One Python process, one asyncio event loop, serving the FastAPI app.
Calendar sync and recommendation ranking run inline with the requests
that trigger them; there are no background workers.

Run with: python main.py [--port PORT]
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

project_root = Path(__file__).parent

# Load .env.local first (if exists), then .env as fallback
# .env.local is gitignored and used for local dev overrides
load_dotenv(project_root / ".env.local")
load_dotenv()

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from core.config import check_required_env_vars, get_allowed_origins, get_api_port
from core.database import close_engine, is_configured
from core.users import touch_last_seen
from web_api.auth import SESSION_COOKIE, verify_jwt
from web_api.routes.auth import router as auth_router
from web_api.routes.meetings import router as meetings_router
from web_api.routes.recommendations import router as recommendations_router
from web_api.routes.stats import router as stats_router

logger = logging.getLogger(__name__)

if os.environ.get("SENTRY_DSN"):
    sentry_sdk.init(
        dsn=os.environ["SENTRY_DSN"],
        environment=os.environ.get("ENVIRONMENT", "development"),
        traces_sample_rate=0.0,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Check configuration on startup, close database connections on shutdown."""
    ok, warnings = check_required_env_vars()
    for warning in warnings:
        print(warning)
    if not ok:
        raise RuntimeError("Missing required environment variables")

    yield

    await close_engine()


app = FastAPI(
    title="Study Group Scheduler API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def record_last_seen(request: Request, call_next):
    """Refresh last_seen_at for signed-in callers. Never blocks the request."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        try:
            payload = verify_jwt(token)
        except ValueError:
            payload = None
        if payload and is_configured() and str(payload.get("sub", "")).isdigit():
            await touch_last_seen(int(payload["sub"]))
    return await call_next(request)


app.include_router(auth_router)
app.include_router(meetings_router)
app.include_router(recommendations_router)
app.include_router(stats_router)


@app.get("/")
async def root():
    return {"status": "ok"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Study Group Scheduler Server")
    parser.add_argument(
        "--port",
        type=int,
        default=get_api_port(),
        help="Port to run the server on (default: API_PORT or 8000)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Pass app object directly (not string) to avoid module reimport issues
    uvicorn.run(app, host="0.0.0.0", port=args.port)
