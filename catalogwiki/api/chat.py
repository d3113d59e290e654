"""Conversational endpoint backed by the model client's chat memory."""

import logging

from fastapi import APIRouter, Depends

from ..schemas.chat import ChatRequest, ChatResponse
from ..services.llm_client import LlmClient
from .deps import get_llm_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
def chat(request: ChatRequest, llm_client: LlmClient = Depends(get_llm_client)):
    """Send a message; omit conversation_id to start a new conversation."""
    reply = llm_client.chat(request.message, request.conversation_id)
    return ChatResponse(conversation_id=reply.conversation_id, answer=reply.content)
