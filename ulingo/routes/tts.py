from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ulingo.models.user import User
from ulingo.routes.deps import get_current_user
from ulingo.schemas.chat import SpeakRequest
from ulingo.services.tts_service import TextToSpeechClient, get_tts_client

router = APIRouter(prefix="/tts", tags=["tts"])


@router.post("", response_class=Response)
async def speak(
    speak_request: SpeakRequest,
    user: User = Depends(get_current_user),
    tts: TextToSpeechClient = Depends(get_tts_client)
):
    """Озвучить текст (MP3)"""
    audio = await tts.speak(speak_request.text, voice_id=speak_request.voice_id)
    return Response(content=audio, media_type="audio/mpeg")


@router.get("/voices", response_model=List[dict])
async def list_voices(
    user: User = Depends(get_current_user),
    tts: TextToSpeechClient = Depends(get_tts_client)
):
    return await tts.list_voices()
