# backend/floodwatch/main.py
from __future__ import annotations

import os
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import RedirectResponse

from floodwatch.services.density import InvalidArgument, ValidationError


log = logging.getLogger("uvicorn.error")

# --- Load .env early so os.getenv works everywhere ---
from dotenv import load_dotenv

load_dotenv()

# Optional global API prefix (e.g., "/api")
_API_PREFIX = os.getenv("API_PREFIX", "").strip()
if _API_PREFIX:
    if not _API_PREFIX.startswith("/"):
        _API_PREFIX = "/" + _API_PREFIX
    _API_PREFIX = _API_PREFIX.rstrip("/")

app = FastAPI(
    title="FloodWatch API",
    version="1.0.0",
    description="Flood crisis backend (SOS requests, evacuation centers, announcements, density map).",
)

# ---------------- CORS ----------------
# Prefer explicit origins via CORS_ORIGINS="https://floodwatch.example.org,https://staging.example.org"
# For local dev we allow any localhost/127.0.0.1 on any port.
cors_env = os.getenv("CORS_ORIGINS")
cors_kwargs = dict(allow_methods=["*"], allow_headers=["*"])

if cors_env:
    allow_origins = [o.strip() for o in cors_env.split(",") if o.strip()]
    cors_kwargs.update(allow_origins=allow_origins, allow_credentials=True)
else:
    cors_kwargs.update(
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
    )

app.add_middleware(CORSMiddleware, **cors_kwargs)
log.info("CORS configured: %s", cors_kwargs)


# ---------------- Error envelope ----------------
# Every failure goes out as {"success": false, "error": "..."}
@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"success": False, "error": "; ".join(parts) or "Invalid request"})


@app.exception_handler(InvalidArgument)
@app.exception_handler(ValidationError)
async def density_error(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


@app.exception_handler(Exception)
async def internal_error(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


# ---------------- Routers ----------------
# Each router has its own prefix (/sos, /shelters, /updates, /zones);
# _API_PREFIX is put in front of all of them.
from floodwatch.routes.sos import router as sos_router
app.include_router(sos_router, prefix=_API_PREFIX)

try:
    from floodwatch.routes.shelters import router as shelters_router
    app.include_router(shelters_router, prefix=_API_PREFIX)
except Exception as e:
    log.exception("Failed to include shelters router: %s", e)

try:
    from floodwatch.routes.updates import router as updates_router
    app.include_router(updates_router, prefix=_API_PREFIX)
except Exception as e:
    log.exception("Failed to include updates router: %s", e)

try:
    from floodwatch.routes.zones import router as zones_router
    app.include_router(zones_router, prefix=_API_PREFIX)
except Exception as e:
    log.exception("Failed to include zones router: %s", e)


# ---------------- Meta/utility ----------------
@app.get("/", include_in_schema=False)
def root() -> RedirectResponse:
    return RedirectResponse(url="/docs")


@app.get(f"{_API_PREFIX or ''}/health", tags=["meta"])
def health():
    return {"status": "ok", "prefix": _API_PREFIX or ""}


# ---------------- Local dev entrypoint ----------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "floodwatch.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
