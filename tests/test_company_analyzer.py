import asyncio

import pytest

from models.schemas import CompanyAnalysis
from services.company_analyzer import (
    HEURISTIC_CONFIDENCE, OracleError, analysis_payload, analyze_company, heuristic_analysis,
    is_valid_url, parse_analysis_reply,
)

GOOD_REPLY = {
    "industry": "Video game publishing",
    "department": "Game Development",
    "subDepartment": "Gameplay",
    "jobRole": "Game Developer",
    "skills": ["C++", "Game Design"],
    "tasks": ["Ship titles"],
    "knowledgeAreas": ["Game engines"],
    "reasoning": "The site sells video games",
    "confidence": 85,
}

def test_parse_reply_extracts_json_from_prose():
    analysis = parse_analysis_reply('Sure! Here you go:\n{"industry": "Finance", "jobRole": "Analyst"}\nThanks')
    assert analysis.industry == "Finance"
    assert analysis.jobRole == "Analyst"
    assert analysis.skills == []

@pytest.mark.parametrize("content", [
    "",
    "no json at all",
    "{not valid json}",
    '{"industry": "Finance"}',
    '{"industry": "  ", "jobRole": "Analyst"}',
    '{"industry": ["Finance"], "jobRole": "Analyst"}',
])
def test_parse_reply_rejects_unusable_output(content):
    with pytest.raises(OracleError):
        parse_analysis_reply(content)

@pytest.mark.parametrize("raw,expected", [
    ("85", 85), ('"70"', 70), ("150", 100), ("-5", 0), ('"high"', 0), ("null", None),
    ("Infinity", 0), ("-Infinity", 0), ("1e999", 0), ("NaN", 0), ('"inf"', 0),
])
def test_parse_reply_clamps_confidence(raw, expected):
    analysis = parse_analysis_reply('{"industry": "Finance", "jobRole": "Analyst", "confidence": %s}' % raw)
    assert analysis.confidence == expected

def test_parse_reply_without_confidence_leaves_it_unset():
    assert parse_analysis_reply('{"industry": "Finance", "jobRole": "Analyst"}').confidence is None

def test_parse_reply_wraps_any_validation_failure(monkeypatch):
    def overflow(data):
        raise OverflowError("cannot convert float infinity to integer")
    monkeypatch.setattr(CompanyAnalysis, "model_validate", overflow)
    with pytest.raises(OracleError):
        parse_analysis_reply('{"industry": "Finance", "jobRole": "Analyst"}')

def test_parse_reply_tolerates_nulls():
    analysis = parse_analysis_reply('{"industry": "Finance", "jobRole": "Analyst", "department": null, "skills": null}')
    assert analysis.department == ""
    assert analysis.skills == []

@pytest.mark.parametrize("url,industry,job_role", [
    ("https://www.mayoclinic.org", "Healthcare", "Healthcare Professional"),
    ("https://healthline.com/about", "Healthcare", "Healthcare Professional"),
    ("https://www.mybank.com", "Finance", "Financial Analyst"),
    ("https://finance.yahoo.com", "Finance", "Financial Analyst"),
    ("https://www.stanford.edu", "Education", "Teacher"),
    ("https://highschool.org", "Education", "Teacher"),
    ("https://shop.example.com", "Retail", "Sales Manager"),
    ("https://www.rockstargames.com", "Media", "Game Developer"),
    ("https://example.com", "Technology", "Software Engineer"),
])
def test_heuristic_uses_hostname_keywords(url, industry, job_role):
    analysis = heuristic_analysis(url)
    assert analysis.industry == industry
    assert analysis.jobRole == job_role
    assert analysis.confidence == HEURISTIC_CONFIDENCE == 30

def test_heuristic_ignores_path_keywords():
    assert heuristic_analysis("https://example.com/health/bank").industry == "Technology"

@pytest.mark.parametrize("url,valid", [
    ("https://example.com", True),
    ("http://localhost:3000/path", True),
    ("example.com", False),
    ("not a url", False),
    ("", False),
    (None, False),
])
def test_is_valid_url(url, valid):
    assert is_valid_url(url) is valid

def test_analyze_company_uses_oracle_reply(matcher, oracle_reply):
    calls = oracle_reply(GOOD_REPLY)
    result = asyncio.run(analyze_company("https://www.rockstargames.com", matcher))

    assert result.source == "oracle"
    assert result.analysis.industry == "Video game publishing"
    assert result.matched.industry.industry_name == "Media"
    assert result.matched.job_role.role_name == "Game Developer"
    assert result.confidence == min(85, result.matched.confidence)
    assert len(calls.calls) == 1
    assert "https://www.rockstargames.com" in calls.calls[0]["messages"][0]["content"]

def test_analyze_company_falls_back_when_oracle_fails(matcher, oracle_down):
    result = asyncio.run(analyze_company("https://www.rockstargames.com", matcher))

    assert result.source == "heuristic"
    assert result.analysis.industry == "Media"
    assert result.matched.job_role.role_name == "Game Developer"
    assert result.confidence == 30
    # Back-filled from the matched reference rows
    assert result.analysis.skills == ["Programming", "Game Design"]
    assert result.analysis.tasks == ["Implement gameplay"]
    assert result.analysis.department == "Game Development"
    # Single attempt, no retry
    assert len(oracle_down.calls) == 1

def test_analyze_company_falls_back_on_incomplete_reply(matcher, oracle_reply):
    oracle_reply({"industry": "Finance", "confidence": 90})
    result = asyncio.run(analyze_company("https://www.mybank.com", matcher))
    assert result.source == "heuristic"
    assert result.matched.industry.industry_name == "Finance"
    assert result.matched.job_role.role_name == "Financial Analyst"

def test_analysis_payload_shape(matcher, oracle_down):
    result = asyncio.run(analyze_company("https://example.com", matcher))
    payload = analysis_payload(result, "https://example.com")
    assert payload["websiteUrl"] == "https://example.com"
    assert payload["source"] == "heuristic"
    assert payload["matches"]["primaryJobRole"] == payload["matches"]["jobRole"]
    assert payload["analysis"]["jobRole"] == "Software Engineer"

def test_reply_without_confidence_does_not_cap_match(matcher, oracle_reply):
    oracle_reply({"industry": "Finance", "jobRole": "Financial Analyst"})
    result = asyncio.run(analyze_company("https://www.example.com", matcher))
    assert result.source == "oracle"
    assert result.analysis.confidence is None
    assert result.confidence == result.matched.confidence == 100

def test_non_finite_confidence_never_escapes(matcher, oracle_reply):
    oracle_reply('{"industry": "Finance", "jobRole": "Financial Analyst", "confidence": Infinity}')
    result = asyncio.run(analyze_company("https://www.example.com", matcher))
    assert result.analysis.confidence == 0
    assert result.confidence == 0
