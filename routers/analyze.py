from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
import logging

from models.schemas import AnalysisResponse, CompanyAnalysisRequest, MatchRequest, UpdateAnalysisRequest
from services.company_analyzer import analysis_payload, analyze_company, is_valid_url
from services.data_matcher import DataMatcher, IndustryNotFoundError, serialize_matched_data
from services.reference_store import ReferenceDataError, load_reference_tables

logger = logging.getLogger(__name__)

router = APIRouter()

# Singleton matcher, rebuilt only when the reference snapshot changes
_matcher: Optional[DataMatcher] = None

def get_matcher() -> DataMatcher:
    global _matcher
    try:
        tables = load_reference_tables()
    except ReferenceDataError as e:
        logger.error(f"Reference data unavailable: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to load reference data: {str(e)}")

    if _matcher is None or _matcher.tables is not tables:
        _matcher = DataMatcher(tables)
    return _matcher

@router.post("/analyze-company", response_model=AnalysisResponse)
async def analyze_company_website(request: CompanyAnalysisRequest, matcher: DataMatcher = Depends(get_matcher)):
    """Infer a company profile from its website and reconcile it with the reference data."""
    if not request.websiteUrl:
        raise HTTPException(status_code=400, detail="Website URL is required")
    if not is_valid_url(request.websiteUrl):
        raise HTTPException(status_code=400, detail="Invalid URL format")

    try:
        result = await analyze_company(request.websiteUrl, matcher)
        return analysis_payload(result, request.websiteUrl)
    except Exception as e:
        logger.exception("Company analysis failed")
        raise HTTPException(status_code=500, detail=f"Failed to analyze company: {str(e)}")

@router.post("/update-analysis")
async def update_analysis(request: UpdateAnalysisRequest, matcher: DataMatcher = Depends(get_matcher)):
    """Re-run the match with an industry picked by the user, keeping the original role text."""
    if not request.industryId:
        raise HTTPException(status_code=400, detail="Industry ID is required")

    try:
        matched = matcher.match_for_industry(request.industryId, request.originalJobRoleLabel)
        return serialize_matched_data(matched)
    except IndustryNotFoundError:
        raise HTTPException(status_code=404, detail="Industry not found")
    except Exception as e:
        logger.exception("Update analysis failed")
        raise HTTPException(status_code=500, detail=f"Failed to update analysis: {str(e)}")

@router.post("/match")
async def match_labels(request: MatchRequest, matcher: DataMatcher = Depends(get_matcher)):
    try:
        matched = matcher.match_company_data(request.industryLabel, request.jobRoleLabel, request.skillLabels)
        return serialize_matched_data(matched)
    except Exception as e:
        logger.exception("Matching failed")
        raise HTTPException(status_code=500, detail=f"Failed to match labels: {str(e)}")
