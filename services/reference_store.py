import csv
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from core.config import settings
from models.schemas import (
    Industry, JobRole, MasterSkill, ReferenceTables, Skill, SkillMap, Task,
)

logger = logging.getLogger(__name__)

REFERENCE_FILES = {
    "industries": "s_industries.csv",
    "job_roles": "s_jobrole.csv",
    "skills": "s_jobrole_skills.csv",
    "tasks": "s_jobrole_task.csv",
    "skill_maps": "s_skill_map_k_a.csv",
    "master_skills": "master_skills.csv",
}
OPTIONAL_TABLES = {"master_skills"}

ROW_TYPES = {
    "industries": Industry,
    "job_roles": JobRole,
    "skills": Skill,
    "tasks": Task,
    "skill_maps": SkillMap,
    "master_skills": MasterSkill,
}

class ReferenceDataError(RuntimeError):
    """Reference CSV files are missing or unreadable."""

def parse_delimited_text(text: str, delimiter: str = ",") -> List[Dict[str, str]]:
    """Parse header-first delimited text into one dict per row.

    Short rows are padded with "", extra cells are ignored, rows where every
    field is empty are dropped and lines the csv module rejects are skipped.
    """
    if not text or not isinstance(text, str):
        return []

    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        return []

    try:
        headers = [h.strip() for h in next(csv.reader([lines[0]], delimiter=delimiter, strict=True))]
    except csv.Error as e:
        logger.warning(f"Unreadable header line: {e}")
        return []

    rows: List[Dict[str, str]] = []
    for line_no, line in enumerate(lines[1:], start=2):
        try:
            values = next(csv.reader([line], delimiter=delimiter, strict=True))
        except csv.Error as e:
            logger.debug(f"Skipping malformed line {line_no}: {e}")
            continue

        values = [v.strip() for v in values]
        row = {
            header: values[index] if index < len(values) else ""
            for index, header in enumerate(headers)
        }
        if any(row.values()):
            rows.append(row)
    return rows

def _build_rows(table: str, rows: Iterable[Dict[str, str]]) -> tuple:
    row_type = ROW_TYPES[table]
    fields = row_type.__dataclass_fields__.keys()
    return tuple(row_type(**{name: (row.get(name) or "") for name in fields}) for row in rows)

def tables_from_rows(**rows: Iterable[Dict[str, str]]) -> ReferenceTables:
    """Build immutable tables from already-parsed rows, keyed by table name."""
    unknown = set(rows) - set(ROW_TYPES)
    if unknown:
        raise ValueError(f"Unknown reference tables: {sorted(unknown)}")
    return ReferenceTables(**{table: _build_rows(table, table_rows) for table, table_rows in rows.items()})

def read_reference_tables(data_dir: Path) -> ReferenceTables:
    data_dir = Path(data_dir)
    parsed: Dict[str, List[Dict[str, str]]] = {}

    for table, filename in REFERENCE_FILES.items():
        path = data_dir / filename
        if not path.exists() and table in OPTIONAL_TABLES:
            logger.warning(f"Optional reference file {path} not found, using an empty table")
            parsed[table] = []
            continue
        try:
            parsed[table] = parse_delimited_text(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error loading reference data from {path}: {e}")
            raise ReferenceDataError(f"Cannot read reference file {filename}: {e}") from e

    tables = tables_from_rows(**parsed)
    logger.info(f"Loaded reference data from {data_dir}: {tables.counts()}")
    return tables

@lru_cache(maxsize=None)
def _cached_tables(data_dir: str) -> ReferenceTables:
    return read_reference_tables(Path(data_dir))

def load_reference_tables(data_dir: Optional[Path] = None) -> ReferenceTables:
    """Shared snapshot of the reference tables, read once per process."""
    return _cached_tables(str(data_dir or settings.REFERENCE_DATA_DIR))

def clear_reference_cache() -> None:
    _cached_tables.cache_clear()
