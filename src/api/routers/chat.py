"""POST /api/chat -- plain model passthrough."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from src.nlquery.chat import chat

router = APIRouter()


class ChatRequest(BaseModel):
    message: Any = None


class ChatResponse(BaseModel):
    text: str


@router.post("", response_model=ChatResponse)
def chat_endpoint(req: ChatRequest) -> ChatResponse:
    return ChatResponse(**chat(req.message))
