import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse, Response

from ai_core.errors import InvalidRequest, SynthesisFailed
from backend.dependencies import get_tts
from voice.tts_client import SpeechSynthesizer

logger = logging.getLogger("backend.tts")
router = APIRouter()


@router.get("/tts")
async def tts(text: Optional[str] = None, synth: SpeechSynthesizer = Depends(get_tts)):
    try:
        logger.info(f"🔊 TTS request: {len(text or '')} chars")
        result = await synth.synthesize(text)
        logger.info(f"✅ Audio from {result.provider}: {len(result.audio)} bytes in {result.elapsed:.2f}s")
        return Response(
            content=result.audio,
            media_type=result.media_type,
            headers={"X-TTS-Provider": result.provider, "Cache-Control": "no-store"},
        )
    except InvalidRequest as e:
        logger.warning(f"⚠️ Invalid TTS request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except SynthesisFailed as e:
        logger.error(f"❌ TTS failed: {e}")
        return PlainTextResponse("Failed to generate speech", status_code=500)
    except Exception as e:
        logger.error(f"❌ TTS request failed: {str(e)}")
        logger.exception(e)
        return PlainTextResponse("Failed to generate speech", status_code=500)
