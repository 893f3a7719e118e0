import json
from types import SimpleNamespace

import pytest

from services.data_matcher import DataMatcher
from services.reference_store import clear_reference_cache, tables_from_rows

class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

class FakeOpenAIClient:
    def __init__(self, content=None, error=None):
        self.completions = FakeCompletions(content, error)
        self.chat = SimpleNamespace(completions=self.completions)

@pytest.fixture
def oracle_reply(monkeypatch):
    """Make the model return ``payload`` (dict -> JSON text, str as-is)."""
    def install(payload):
        content = json.dumps(payload) if isinstance(payload, dict) else payload
        client = FakeOpenAIClient(content=content)
        monkeypatch.setattr("services.company_analyzer.openai_client", client)
        return client.completions
    return install

@pytest.fixture
def oracle_down(monkeypatch):
    client = FakeOpenAIClient(error=RuntimeError("connection refused"))
    monkeypatch.setattr("services.company_analyzer.openai_client", client)
    return client.completions

@pytest.fixture(autouse=True)
def fresh_reference_cache():
    clear_reference_cache()
    yield
    clear_reference_cache()

@pytest.fixture
def tables():
    return tables_from_rows(
        industries=[
            {"id": "1", "industry_name": "Technology", "description": "Software and IT services"},
            {"id": "2", "industry_name": "Healthcare", "description": "Hospitals and clinics"},
            {"id": "3", "industry_name": "Finance", "description": "Banking and insurance"},
            {"id": "6", "industry_name": "Media", "description": "Film, television and video games"},
        ],
        job_roles=[
            {"id": "101", "industry_id": "1", "role_name": "Software Engineer",
             "department": "Engineering", "sub_department": "Development", "description": "Builds software"},
            {"id": "102", "industry_id": "1", "role_name": "Data Analyst",
             "department": "Analytics", "sub_department": "Reporting", "description": "Analyses data"},
            {"id": "301", "industry_id": "3", "role_name": "Financial Analyst",
             "department": "Finance", "sub_department": "Analysis", "description": "Evaluates investments"},
            {"id": "601", "industry_id": "6", "role_name": "Game Developer",
             "department": "Game Development", "sub_department": "Game Design", "description": "Builds games"},
        ],
        skills=[
            {"id": "1", "jobrole_id": "101", "skill_name": "Programming", "skill_level": "Advanced", "importance": "High"},
            {"id": "2", "jobrole_id": "102", "skill_name": "Data Analysis", "skill_level": "Advanced", "importance": "High"},
            {"id": "3", "jobrole_id": "102", "skill_name": "SQL", "skill_level": "Intermediate", "importance": "High"},
            {"id": "4", "jobrole_id": "601", "skill_name": "Programming", "skill_level": "Advanced", "importance": "High"},
            {"id": "5", "jobrole_id": "601", "skill_name": "Game Design", "skill_level": "Advanced", "importance": "High"},
        ],
        tasks=[
            {"id": "1", "jobrole_id": "101", "task_name": "Write code", "frequency": "Daily", "complexity": "High"},
            {"id": "2", "jobrole_id": "601", "task_name": "Implement gameplay", "frequency": "Daily", "complexity": "High"},
        ],
        skill_maps=[
            {"id": "1", "skill_name": "Analysis", "knowledge_area": "Statistics", "ability_description": "Reads data"},
            {"id": "2", "skill_name": "SQL Databases", "knowledge_area": "Databases", "ability_description": "Queries data"},
            {"id": "3", "skill_name": "Programming", "knowledge_area": "Computer Science", "ability_description": "Writes code"},
            {"id": "4", "skill_name": "Negotiation", "knowledge_area": "Sales", "ability_description": "Closes deals"},
        ],
        master_skills=[
            {"id": "1", "skill_category": "Technical", "skill_name": "Data Analysis", "description": "", "proficiency_level": "Advanced"},
            {"id": "2", "skill_category": "Creative", "skill_name": "Design", "description": "", "proficiency_level": "Advanced"},
        ],
    )

@pytest.fixture
def matcher(tables):
    return DataMatcher(tables)
