import logging
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cerisonet.config import settings
from cerisonet.database import Base, async_session, engine
from cerisonet.db import close_mongo_connection
from cerisonet.errors import CerisonetError, Unexpected
from cerisonet.routers import auth, posts, users
from cerisonet.realtime.server import sio
from cerisonet.services.session_service import SessionService

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables and drop sessions that expired while we were down
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Relational tables ready")

    async with async_session() as session:
        await SessionService(session).purge_expired()

    yield

    # Shutdown
    close_mongo_connection()
    await engine.dispose()

app = FastAPI(title="CERISoNet backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

app.include_router(auth.router, tags=["auth"])
app.include_router(users.router, tags=["users"])
app.include_router(posts.router, tags=["posts"])

@app.exception_handler(CerisonetError)
async def cerisonet_error_handler(request: Request, exc: CerisonetError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message},
    )

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Requête invalide"},
    )

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = Unexpected()
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "message": error.message},
    )

@app.get("/error")
async def error():
    return JSONResponse(status_code=500, content={"success": False, "message": "Erreur serveur"})

@app.get("/health")
async def health():
    return {"status": "ok"}

# ASGI entry point: Socket.IO traffic on SOCKETIO_PATH, everything else to FastAPI
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app, socketio_path=settings.SOCKETIO_PATH)
