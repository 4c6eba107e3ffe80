from pydantic import BaseModel, Field
from typing import List, Literal


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    history: List[ChatMessage] = []


class ChatReply(BaseModel):
    reply: str


class SpeakRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)
    voice_id: str | None = None
