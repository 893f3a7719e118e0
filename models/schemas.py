from pydantic import BaseModel, Field, field_validator
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# ---------- Reference rows (one per CSV table) ----------

@dataclass(frozen=True)
class Industry:
    id: str
    industry_name: str
    description: str = ""

@dataclass(frozen=True)
class JobRole:
    id: str
    industry_id: str
    role_name: str
    department: str = ""
    sub_department: str = ""
    description: str = ""

@dataclass(frozen=True)
class Skill:
    id: str
    jobrole_id: str
    skill_name: str
    skill_level: str = ""
    importance: str = ""

@dataclass(frozen=True)
class Task:
    id: str
    jobrole_id: str
    task_name: str
    frequency: str = ""
    complexity: str = ""

@dataclass(frozen=True)
class SkillMap:
    """Knowledge-area row. Linked to skills by name, not by id."""
    id: str
    skill_name: str
    knowledge_area: str = ""
    ability_description: str = ""

@dataclass(frozen=True)
class MasterSkill:
    id: str
    skill_category: str
    skill_name: str
    description: str = ""
    proficiency_level: str = ""

@dataclass(frozen=True)
class ReferenceTables:
    industries: Tuple[Industry, ...] = ()
    job_roles: Tuple[JobRole, ...] = ()
    skills: Tuple[Skill, ...] = ()
    tasks: Tuple[Task, ...] = ()
    skill_maps: Tuple[SkillMap, ...] = ()
    master_skills: Tuple[MasterSkill, ...] = ()

    def counts(self) -> Dict[str, int]:
        return {
            "industries": len(self.industries),
            "job_roles": len(self.job_roles),
            "skills": len(self.skills),
            "tasks": len(self.tasks),
            "skill_maps": len(self.skill_maps),
            "master_skills": len(self.master_skills),
        }

# ---------- Derived results ----------

@dataclass
class RelatedData:
    skills: List[Skill] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    knowledge_areas: List[SkillMap] = field(default_factory=list)
    master_skills: List[MasterSkill] = field(default_factory=list)

@dataclass
class MatchedData:
    industry: Industry
    job_role: Optional[JobRole]
    job_roles: List[JobRole]
    skills: List[Skill]
    tasks: List[Task]
    knowledge_areas: List[SkillMap]
    master_skills: List[MasterSkill]
    confidence: int
    industry_confidence: int = 0
    job_role_confidence: int = 0

# ---------- API models ----------

class CompanyAnalysisRequest(BaseModel):
    websiteUrl: Optional[str] = Field(None, description="Absolute URL of the company website")

class MatchRequest(BaseModel):
    industryLabel: str = Field(..., description="Free-text industry guess")
    jobRoleLabel: str = Field(..., description="Free-text job role guess")
    skillLabels: List[str] = Field(default_factory=list)

class UpdateAnalysisRequest(BaseModel):
    industryId: Optional[str] = Field(None, description="Id of the industry picked by the user")
    originalJobRoleLabel: str = Field("", description="Job role text from the first analysis")

class CompanyAnalysis(BaseModel):
    """Structured reply expected from the oracle (and produced by the URL heuristic)."""
    industry: str
    department: str = ""
    subDepartment: str = ""
    jobRole: str
    skills: List[str] = Field(default_factory=list)
    tasks: List[str] = Field(default_factory=list)
    knowledgeAreas: List[str] = Field(default_factory=list)
    reasoning: str = ""
    # None means the model gave no confidence of its own
    confidence: Optional[int] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value: Any) -> Optional[int]:
        if value is None:
            return None
        try:
            value = int(round(float(value)))
        except (TypeError, ValueError, OverflowError):
            return 0
        return max(0, min(100, value))

    @field_validator("department", "subDepartment", "reasoning", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("skills", "tasks", "knowledgeAreas", mode="before")
    @classmethod
    def coerce_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value if v is not None]

class AnalysisResponse(BaseModel):
    analysis: CompanyAnalysis
    matches: Dict[str, Any]
    confidence: int
    websiteUrl: str
    source: str
