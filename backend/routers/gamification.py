import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ai_core.errors import GenerationFailed, InvalidRequest, UpstreamFormatError
from ai_core.explain_cache import ExplanationCache
from ai_core.explain_chain import explain_concept
from ai_core.llm_client import GeminiClient
from backend.dependencies import get_explanation_cache, get_llm
from backend.models.schemas import ExplainConceptReq

logger = logging.getLogger("backend.gamification")
router = APIRouter()


@router.post("/explain-concept")
async def explain(
    req: ExplainConceptReq,
    llm: GeminiClient = Depends(get_llm),
    cache: ExplanationCache = Depends(get_explanation_cache),
):
    try:
        logger.info(f"💡 Explain concept: {req.subject} / {req.topic} / {req.subtopic}")
        result, cached = await explain_concept(llm, cache, req.subject, req.topic, req.subtopic, req.context)
        return JSONResponse(content=result, headers={"X-Cache": "HIT" if cached else "MISS"})
    except InvalidRequest as e:
        logger.warning(f"⚠️ Invalid explain-concept request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamFormatError as e:
        logger.error(f"❌ Explanation output malformed: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Model returned a malformed explanation", "details": str(e), "raw": e.raw},
        )
    except GenerationFailed as e:
        logger.error(f"❌ Explanation generation failed: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to explain concept", "details": str(e)})
    except Exception as e:
        logger.error(f"❌ Explain concept failed: {str(e)}")
        logger.exception(e)
        return JSONResponse(status_code=500, content={"error": "Failed to explain concept", "details": str(e)})
