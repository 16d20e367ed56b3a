import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.auth import auth_backend, fastapi_users
from core.config import settings
from core.responses import error
from db.database import create_db_and_tables
from routers.asset_types import router as asset_types_router
from routers.assignments import router as assignments_router
from routers.expenditures import router as expenditures_router
from routers.inventory import router as inventory_router
from routers.locations import router as locations_router
from routers.purchases import router as purchases_router
from routers.transfers import router as transfers_router
from routers.users import router as users_router
from services.exceptions import LedgerError

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_db_and_tables()
    logger.info("Asset Ledger API started")
    yield


app = FastAPI(
    title="Asset Ledger API",
    description="Inventory movement ledger: purchases, transfers, assignments and expenditures",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error(exc.message))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(status_code=400, content=error("; ".join(parts) or "Invalid request"))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error("Internal server error", str(exc) if settings.debug else None),
    )


# Authentication routes (fastapi-users)
app.include_router(fastapi_users.get_auth_router(auth_backend), prefix="/auth/jwt", tags=["auth"])
app.include_router(users_router, prefix="/users", tags=["users"])

# Reference data
app.include_router(locations_router, prefix="/locations", tags=["locations"])
app.include_router(asset_types_router, prefix="/asset-types", tags=["asset-types"])

# Ledger
app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
app.include_router(purchases_router, prefix="/purchases", tags=["purchases"])
app.include_router(transfers_router, prefix="/transfers", tags=["transfers"])
app.include_router(assignments_router, prefix="/assignments", tags=["assignments"])
app.include_router(expenditures_router, prefix="/expenditures", tags=["expenditures"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
