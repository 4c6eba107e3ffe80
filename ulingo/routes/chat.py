from fastapi import APIRouter, Depends

from ulingo.models.user import User
from ulingo.routes.deps import get_current_user
from ulingo.schemas.chat import ChatReply, ChatRequest
from ulingo.services import chat_service

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatReply)
async def send_message(
    chat_request: ChatRequest,
    user: User = Depends(get_current_user)
):
    """Вопрос AI-ассистенту с историей переписки"""
    reply = await chat_service.send_message(chat_request.history, chat_request.message)
    return ChatReply(reply=reply)
