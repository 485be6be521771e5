"""
FastAPI application entry-point.
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routers import catalog, chat, nlquery

app = FastAPI(
    title="Blog NL Query",
    version="0.1.0",
    description="Natural-language queries over a whitelisted blog schema",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(nlquery.router, prefix="/api/nlquery", tags=["NL Query"])
app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
app.include_router(catalog.router, prefix="/api", tags=["Catalog"])


@app.get("/health")
def health():
    return {"status": "ok"}
