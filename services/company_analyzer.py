from dataclasses import dataclass
from typing import Dict, Tuple
from urllib.parse import urlparse
import json
import logging
import re

from pydantic import ValidationError

from core.config import settings
from core.openai_client import openai_client
from models.schemas import CompanyAnalysis, MatchedData
from services.data_matcher import DataMatcher, serialize_matched_data

logger = logging.getLogger(__name__)

HEURISTIC_CONFIDENCE = 30

# hostname keywords -> (industry, job role, department, sub-department); first hit wins
DOMAIN_HINTS: Tuple[Tuple[Tuple[str, ...], Tuple[str, str, str, str]], ...] = (
    (("health", "medical", "clinic"), ("Healthcare", "Healthcare Professional", "Medical", "Patient Care")),
    (("bank", "finance", "invest"), ("Finance", "Financial Analyst", "Finance", "Analysis")),
    (("edu", "school", "university"), ("Education", "Teacher", "Education", "Instruction")),
    (("shop", "store", "retail"), ("Retail", "Sales Manager", "Sales", "Management")),
    (("game", "gaming", "rockstar"), ("Media", "Game Developer", "Game Development", "Game Design")),
)
DEFAULT_HINT = ("Technology", "Software Engineer", "Engineering", "Development")

class OracleError(RuntimeError):
    """The model call failed or its reply was unusable."""

@dataclass
class AnalysisResult:
    analysis: CompanyAnalysis
    matched: MatchedData
    confidence: int
    source: str

def is_valid_url(value: str) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)

def build_analysis_prompt(website_url: str) -> str:
    return f"""Analyze the company website at "{website_url}" and provide structured information about the organization.

Based on the website content, domain, and any available information, provide:

1. Industry classification
2. Primary department focus
3. Sub-department specialization
4. The most typical job role in this company
5. Key skills required for employees
6. Common tasks and responsibilities
7. Knowledge areas and abilities needed
8. Your reasoning for these classifications
9. Confidence level (0-100)

Respond in JSON with exactly this structure:
{{
  "industry": "string",
  "department": "string",
  "subDepartment": "string",
  "jobRole": "string",
  "skills": ["skill1", "skill2", "skill3"],
  "tasks": ["task1", "task2", "task3"],
  "knowledgeAreas": ["area1", "area2", "area3"],
  "reasoning": "explanation of analysis",
  "confidence": 85
}}

Be specific and practical. Focus on the most likely industry and job role based on the website."""

def parse_analysis_reply(content: str) -> CompanyAnalysis:
    """Pull the JSON object out of the model reply and validate it."""
    if not content:
        raise OracleError("No content received from the model")

    match_obj = re.search(r"\{.*\}", content, re.DOTALL)
    if not match_obj:
        raise OracleError("No JSON found in model reply")

    try:
        data = json.loads(match_obj.group())
        analysis = CompanyAnalysis.model_validate(data)
    except (json.JSONDecodeError, ValidationError, ValueError, TypeError, OverflowError) as e:
        raise OracleError(f"Invalid model reply: {e}") from e

    if not analysis.industry.strip() or not analysis.jobRole.strip():
        raise OracleError("Model reply is missing industry or jobRole")
    return analysis

async def infer_company_profile(website_url: str) -> CompanyAnalysis:
    """Single model call, no retry. Any failure surfaces as OracleError."""
    try:
        response = openai_client.chat.completions.create(
            model=settings.ORACLE_MODEL,
            messages=[{"role": "user", "content": build_analysis_prompt(website_url)}],
            max_tokens=1500,
            temperature=0.3,
        )
        content = response.choices[0].message.content
    except Exception as e:
        raise OracleError(f"Model call failed: {e}") from e

    logger.debug(f"Model reply for {website_url}: {content}")
    return parse_analysis_reply((content or "").strip())

def heuristic_analysis(website_url: str) -> CompanyAnalysis:
    """Offline guess from hostname keywords, used when the model is unavailable."""
    domain = (urlparse(website_url).hostname or "").lower()

    industry, job_role, department, sub_department = DEFAULT_HINT
    for keywords, hint in DOMAIN_HINTS:
        if any(k in domain for k in keywords):
            industry, job_role, department, sub_department = hint
            break

    return CompanyAnalysis(
        industry=industry,
        department=department,
        subDepartment=sub_department,
        jobRole=job_role,
        reasoning=f"Fallback analysis based on domain keywords from {domain}",
        confidence=HEURISTIC_CONFIDENCE,
    )

def _backfill_from_matches(analysis: CompanyAnalysis, matched: MatchedData) -> CompanyAnalysis:
    role = matched.job_role
    return analysis.model_copy(update={
        "department": (role.department if role and role.department else analysis.department) or "General",
        "subDepartment": (role.sub_department if role and role.sub_department else analysis.subDepartment) or "Operations",
        "skills": [s.skill_name for s in matched.skills[:3]] or analysis.skills,
        "tasks": [t.task_name for t in matched.tasks[:3]] or analysis.tasks,
        "knowledgeAreas": [ka.knowledge_area for ka in matched.knowledge_areas[:3]] or analysis.knowledgeAreas,
    })

async def analyze_company(website_url: str, matcher: DataMatcher) -> AnalysisResult:
    """URL -> oracle (or heuristic) -> reconciliation against the reference data."""
    source = "oracle"
    try:
        analysis = await infer_company_profile(website_url)
    except OracleError as e:
        logger.error(f"Company analysis failed for {website_url}: {e}")
        analysis = heuristic_analysis(website_url)
        source = "heuristic"

    matched = matcher.match_company_data(analysis.industry, analysis.jobRole, analysis.skills)
    if source == "heuristic":
        analysis = _backfill_from_matches(analysis, matched)

    # A reply without its own confidence does not cap the match confidence
    confidence = matched.confidence
    if analysis.confidence is not None:
        confidence = min(analysis.confidence, confidence)

    return AnalysisResult(
        analysis=analysis,
        matched=matched,
        confidence=confidence,
        source=source,
    )

def analysis_payload(result: AnalysisResult, website_url: str) -> Dict:
    matches = serialize_matched_data(result.matched)
    matches["primaryJobRole"] = matches["jobRole"]
    return {
        "analysis": result.analysis.model_dump(),
        "matches": matches,
        "confidence": result.confidence,
        "websiteUrl": website_url,
        "source": result.source,
    }
