# worldgrid/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from worldgrid.config import LOG_LEVEL
from worldgrid.database import engine
from worldgrid.game.errors import WorldError
from worldgrid.routes.admin import router as admin_router
from worldgrid.routes.auth import router as auth_router
from worldgrid.routes.world import router as world_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="World Grid Server", version="0.1.0")

app.include_router(auth_router)
app.include_router(world_router)
app.include_router(admin_router)


@app.exception_handler(WorldError)
def world_error_handler(request: Request, exc: WorldError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "message": "Storage failure"})


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/db-ping")
def db_ping() -> dict:
    with engine.connect() as conn:
        result = conn.execute(text("SELECT 1")).scalar_one()
    return {"db": "ok", "select_1": result}
