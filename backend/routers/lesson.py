import copy
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ai_core.errors import GenerationFailed, InvalidRequest, UpstreamFormatError
from ai_core.lesson_chain import generate_lesson
from ai_core.llm_client import GeminiClient
from ai_core.prompts import FALLBACK_LESSON
from backend.dependencies import get_llm
from backend.models.schemas import LessonReq

logger = logging.getLogger("backend.lesson")
router = APIRouter()


def _failure(error: str, details: str, **extra) -> JSONResponse:
    body = {"error": error, "details": details, "fallbackLesson": copy.deepcopy(FALLBACK_LESSON)}
    body.update(extra)
    return JSONResponse(status_code=500, content=body)


@router.post("/lesson")
async def lesson(req: LessonReq, llm: GeminiClient = Depends(get_llm)):
    files = [f.model_dump() for f in req.files or []]
    try:
        logger.info(f"📝 Lesson request: prompt={len(req.prompt or '')} chars, files={len(files)}")
        result = await generate_lesson(llm, req.prompt, files)
        logger.info(f"✅ Lesson generated: {len(result['lesson'])} steps")
        return JSONResponse(content=result)
    except InvalidRequest as e:
        logger.warning(f"⚠️ Invalid lesson request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamFormatError as e:
        logger.error(f"❌ Lesson output malformed: {e}")
        logger.debug(f"Raw model output: {e.raw!r}")
        return _failure("Model returned a malformed lesson", str(e), raw=e.raw)
    except GenerationFailed as e:
        logger.error(f"❌ Lesson generation failed: {e}")
        return _failure("Failed to generate lesson", str(e))
    except Exception as e:
        logger.error(f"❌ Lesson request failed: {str(e)}")
        logger.exception(e)
        return _failure("Failed to generate lesson", str(e))
