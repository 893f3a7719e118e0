from dataclasses import asdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging
import math

from models.schemas import (
    Industry, JobRole, MasterSkill, MatchedData, ReferenceTables, RelatedData, Skill, SkillMap, Task,
)
from services.fuzzy_matcher import INDUSTRY_PRESET, JOB_ROLE_PRESET, match_best

logger = logging.getLogger(__name__)

# Used only when the industries table is empty
DEFAULT_INDUSTRY = Industry(id="1", industry_name="Technology", description="Technology services")

# Free-text industry hints that the reference data files under a broader industry
INDUSTRY_ALIASES: Dict[str, Tuple[str, ...]] = {
    "Media": ("game", "gaming", "video"),
}

class IndustryNotFoundError(LookupError):
    """No industry with the requested id."""

def skill_names_overlap(skill_name: str, other_name: str) -> bool:
    """Loose name link between a skill and a knowledge-area/master-skill row.

    Either lowercased name containing the other counts as a match. There is no
    foreign key between these tables, so this is approximate on purpose.
    """
    try:
        a, b = skill_name.lower(), other_name.lower()
        return a in b or b in a
    except (AttributeError, TypeError):
        return False

def _named(rows: Iterable, name_field: str) -> tuple:
    return tuple(r for r in rows if isinstance(getattr(r, name_field, None), str) and getattr(r, name_field).strip())

class DataMatcher:
    def __init__(self, tables: ReferenceTables) -> None:
        self.tables = tables
        # Rows without a usable name never take part in matching
        self.industries: Tuple[Industry, ...] = _named(tables.industries, "industry_name")
        self.job_roles: Tuple[JobRole, ...] = _named(tables.job_roles, "role_name")
        self.skills: Tuple[Skill, ...] = _named(tables.skills, "skill_name")
        self.tasks: Tuple[Task, ...] = _named(tables.tasks, "task_name")
        self.skill_maps: Tuple[SkillMap, ...] = _named(tables.skill_maps, "skill_name")
        self.master_skills: Tuple[MasterSkill, ...] = _named(tables.master_skills, "skill_name")

        dropped = sum(tables.counts().values()) - sum(len(t) for t in (
            self.industries, self.job_roles, self.skills, self.tasks, self.skill_maps, self.master_skills
        ))
        if dropped:
            logger.info(f"Dropped {dropped} reference rows without a name")

    # ---------- Lookups ----------
    def get_industry(self, industry_id: str) -> Optional[Industry]:
        return next((i for i in self.industries if i.id == industry_id), None)

    def roles_for_industry(self, industry_id: str) -> List[JobRole]:
        return [jr for jr in self.job_roles if jr.industry_id == industry_id]

    def normalize_industry_label(self, label: str) -> str:
        """Map hint words (e.g. "gaming") onto the reference industry that covers them."""
        if not isinstance(label, str):
            return label
        lowered = label.lower()
        names = {i.industry_name.lower(): i.industry_name for i in self.industries}
        for target, hints in INDUSTRY_ALIASES.items():
            if target.lower() in names and any(h in lowered for h in hints):
                return names[target.lower()]
        return label

    # ---------- Fuzzy resolution ----------
    def find_best_industry(self, label: str) -> Tuple[Industry, int]:
        match = match_best(label, self.industries, INDUSTRY_PRESET, empty_fallback=DEFAULT_INDUSTRY)
        return match.item, match.confidence

    def find_best_job_role(self, label: str, industry_id: str) -> Tuple[Optional[JobRole], int]:
        """Best role for ``label`` among the roles of ``industry_id``.

        When the industry has no roles at all, the first role of the whole
        table is returned at the fallback confidence even though it belongs to
        another industry.
        """
        if not self.job_roles:
            return None, 0

        industry_roles = self.roles_for_industry(industry_id)
        if not isinstance(label, str) or not label.strip():
            return (industry_roles or self.job_roles)[0], 0

        if not industry_roles:
            logger.warning(
                f"Industry {industry_id} has no job roles, falling back to '{self.job_roles[0].role_name}'"
            )
            return self.job_roles[0], JOB_ROLE_PRESET.fallback_confidence

        match = match_best(label, industry_roles, JOB_ROLE_PRESET)
        return match.item, match.confidence

    # ---------- Related data ----------
    def get_related_data(self, jobrole_id: Optional[str]) -> RelatedData:
        if jobrole_id is None:
            return RelatedData()

        skills = [s for s in self.skills if s.jobrole_id == jobrole_id]
        tasks = [t for t in self.tasks if t.jobrole_id == jobrole_id]
        skill_names = [s.skill_name for s in skills]

        knowledge_areas = [
            sm for sm in self.skill_maps
            if any(skill_names_overlap(name, sm.skill_name) for name in skill_names)
        ]
        master_skills = [
            ms for ms in self.master_skills
            if any(skill_names_overlap(name, ms.skill_name) for name in skill_names)
        ]
        return RelatedData(skills=skills, tasks=tasks, knowledge_areas=knowledge_areas, master_skills=master_skills)

    # ---------- Main entry points ----------
    def match_company_data(
        self,
        industry_label: str,
        job_role_label: str,
        skill_labels: Optional[Sequence[str]] = None,
    ) -> MatchedData:
        """Resolve free-text industry/role labels into reference records."""
        if skill_labels:
            # Kept for callers that pass the oracle's skills; selection ignores them
            logger.debug(f"Ignoring {len(skill_labels)} skill labels during matching")

        industry, industry_confidence = self.find_best_industry(self.normalize_industry_label(industry_label))
        return self._assemble(industry, industry_confidence, job_role_label)

    def match_for_industry(self, industry_id: str, job_role_label: str) -> MatchedData:
        """Re-resolve the original role text inside an industry the user picked."""
        industry = self.get_industry(industry_id)
        if industry is None:
            raise IndustryNotFoundError(f"Industry not found: {industry_id}")
        return self._assemble(industry, 100, job_role_label)

    def _assemble(self, industry: Industry, industry_confidence: int, job_role_label: str) -> MatchedData:
        job_role, job_role_confidence = self.find_best_job_role(job_role_label, industry.id)
        related = self.get_related_data(job_role.id if job_role else None)
        confidence = math.floor((industry_confidence + job_role_confidence) / 2 + 0.5)

        logger.info(
            f"Matched industry '{industry.industry_name}' ({industry_confidence}%) and role "
            f"'{job_role.role_name if job_role else None}' ({job_role_confidence}%)"
        )
        return MatchedData(
            industry=industry,
            job_role=job_role,
            job_roles=self.roles_for_industry(industry.id),
            skills=related.skills,
            tasks=related.tasks,
            knowledge_areas=related.knowledge_areas,
            master_skills=related.master_skills,
            confidence=confidence,
            industry_confidence=industry_confidence,
            job_role_confidence=job_role_confidence,
        )

def serialize_matched_data(matched: MatchedData) -> Dict:
    """camelCase payload consumed by the front end."""
    return {
        "industry": asdict(matched.industry),
        "jobRole": asdict(matched.job_role) if matched.job_role else None,
        "jobRoles": [asdict(jr) for jr in matched.job_roles],
        "skills": [asdict(s) for s in matched.skills],
        "tasks": [asdict(t) for t in matched.tasks],
        "knowledgeAreas": [asdict(ka) for ka in matched.knowledge_areas],
        "masterSkills": [asdict(ms) for ms in matched.master_skills],
        "confidence": matched.confidence,
        "industryConfidence": matched.industry_confidence,
        "jobRoleConfidence": matched.job_role_confidence,
    }
