import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .config import get_settings
from .db import close_mongo_connection, connect_to_mongo
from .integrations.cloudinary import ensure_configured as cld_ensure
from .integrations.cloudinary import get_status as cld_status
from .integrations.cloudinary import is_enabled as cld_enabled
from .redis_bus import stop as redis_bus_stop
from .routers import admin, auth, blocks, chat, interests, profiles, reports, shortlist
from .services.account_service import get_account_service

LOGGER = logging.getLogger("uvicorn.error")

app = FastAPI(title="HolyBond Matrimony API")
settings = get_settings()

# CSV list; both localhost and 127.0.0.1 by default
_allow_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
LOGGER.info("CORS allow_origins=%s", _allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag"],
    allow_credentials=True,
)
app.add_middleware(GZipMiddleware, minimum_size=512)


@app.middleware("http")
async def log_slow_requests(request: Request, call_next):
    t0 = time.time()
    response = await call_next(request)
    dt = (time.time() - t0) * 1000
    if dt >= get_settings().slow_request_ms:
        LOGGER.warning(
            "slow request %s %s %dms status=%s",
            request.method,
            request.url.path,
            int(dt),
            response.status_code,
        )
    return response


@app.on_event("startup")
async def startup():
    await connect_to_mongo()
    await get_account_service().ensure_admin_seeded()

    if get_settings().redis_pubsub_enabled:
        LOGGER.info("Redis pub/sub publishing enabled (prefix=%s)", get_settings().redis_pubsub_prefix)
    else:
        LOGGER.info("Redis pub/sub disabled")

    if cld_enabled():
        cld_ensure()
        info = cld_status()
        LOGGER.info(
            "Cloudinary configured=%s cloud=%s via_url=%s",
            bool(info.get("configured")),
            info.get("cloudName") or "unknown",
            "yes" if info.get("usingUrl") else "no",
        )
    else:
        LOGGER.info("Cloudinary not configured; photos are stored as given")


@app.on_event("shutdown")
async def shutdown():
    await close_mongo_connection()
    await redis_bus_stop()


# Routers
app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(profiles.router, prefix="/api")
app.include_router(shortlist.router, prefix="/api")
app.include_router(interests.router, prefix="/api")
app.include_router(blocks.router, prefix="/api")
app.include_router(reports.router, prefix="/api")
app.include_router(chat.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


@app.get("/")
async def root():
    return {"status": "holybond-api-ok"}


@app.get("/api/health/db")
async def db_health():
    from .db import _client as _mongo_client, _db as _mongo_db

    ok = _mongo_client is not None and _mongo_db is not None
    return {
        "mongo": "connected" if ok else "disconnected",
        "db": str(get_settings().mongo_db),
    }
