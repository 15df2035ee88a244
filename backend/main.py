import logging

import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from router import router
from models.db import StoreNotConfiguredError, init_client
from llm import initialize_models

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    init_client()
    await initialize_models()
    yield
    # Shutdown - clients hold no resources that need closing


app = FastAPI(
    title="CaseComp Admin",
    description="Admin backend for managing case competition data.",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


@app.exception_handler(StoreNotConfiguredError)
async def store_not_configured_handler(request: Request, exc: StoreNotConfiguredError):
    logger.warning(f"{request.method} {request.url.path} rejected: store not configured")
    return JSONResponse(status_code=503, content={"error": str(exc), "fallback": True})


app.include_router(router, prefix="/api")
if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
