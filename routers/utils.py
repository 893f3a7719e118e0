from dataclasses import asdict
from datetime import datetime
from fastapi import APIRouter, Depends

from core.config import settings
from core.openai_client import openai_client
from routers.analyze import get_matcher
from services.data_matcher import DataMatcher

router = APIRouter()

@router.get("/")
async def root():
    return {
        "message": settings.APP_TITLE,
        "version": settings.APP_VERSION,
        "endpoints": {
            "/analyze-company": "POST - Infer industry and job role for a company website",
            "/update-analysis": "POST - Re-match with a user-selected industry",
            "/match": "POST - Match free-text industry/job role labels",
            "/industries": "GET - List reference industries",
            "/health": "GET - Health check",
        },
    }

@router.get("/industries")
async def get_industries(matcher: DataMatcher = Depends(get_matcher)):
    return [asdict(industry) for industry in matcher.industries]

@router.get("/health")
async def health_check(matcher: DataMatcher = Depends(get_matcher)):
    # No model call here; a missing key just means every analysis uses the URL heuristic
    ai_status = "configured" if openai_client.configured else "unconfigured"
    return {
        "status": "healthy" if ai_status == "configured" else "degraded",
        "ai_service": ai_status,
        "reference_data": {
            "industries": len(matcher.industries),
            "job_roles": len(matcher.job_roles),
            "skills": len(matcher.skills),
            "tasks": len(matcher.tasks),
            "knowledge_areas": len(matcher.skill_maps),
            "master_skills": len(matcher.master_skills),
        },
        "timestamp": datetime.now().isoformat(),
        "version": settings.APP_VERSION,
    }
