import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spine_studio.config import settings
from spine_studio.routers import assistant, references

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="Spine2D Animation Studio",
    version="0.1.0",
    debug=settings.app_env == "development",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(assistant.router)
app.include_router(references.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
