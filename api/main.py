"""
api.main
========

FastAPI application for the statement portal.

Run with::

    uvicorn api.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from billview import __version__
from billview.settings import API_DEBUG, LOG_LEVEL, NextGenConfigError, settings

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Billview API",
    version=__version__,
    description="Patient statement viewing with date-of-birth verification, and NextGen balance lookups.",
    debug=API_DEBUG,
)

# --- CORS ----------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


# --- Error handlers ------------------------------------------------
@app.exception_handler(NextGenConfigError)
async def nextgen_config_error(request: Request, exc: NextGenConfigError):
    logger.error(f"NextGen is not configured: {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "INTERNAL_ERROR", "message": "NextGen API is not configured"},
    )


# --- Include Routers ----------------------------------------------------------
from .view import router as view_router
from .statements import router as statements_router
from .persons import router as persons_router

app.include_router(view_router)
app.include_router(statements_router)
app.include_router(persons_router)


# ---------- health-check ----------
@app.get("/")
def root():
    return {"status": "ok", "msg": "Billview API is alive"}
