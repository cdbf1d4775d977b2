"""
Master-data import for the employees collection.

Rows come from a JSON list or a CSV export whose columns use the stored
field names (empId, name, department, status, safetyPatrolRecord, photoUrl).
"""

import csv
import json
from pathlib import Path
from typing import Any, Dict, List, Union

from .schema import EMPLOYEES, EmployeeProfile
from .store import DocumentStore
from ..util.logging import logger


def load_employee_rows(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Read employee rows from a .json or .csv file."""
    path = Path(path)
    if path.suffix.lower() == ".csv":
        with path.open(newline="", encoding="utf-8-sig") as handle:
            return [dict(row) for row in csv.DictReader(handle)]

    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("employees", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of employees in {path}")
    return data


async def import_employees(store: DocumentStore, rows: List[Dict[str, Any]]) -> Dict[str, int]:
    """Upsert employee rows keyed by empId. Rows without an empId are skipped."""
    imported = 0
    skipped = 0

    for row in rows:
        emp_id = str(row.get("empId") or "").strip()
        if not emp_id:
            skipped += 1
            continue

        profile = EmployeeProfile(
            emp_id=emp_id,
            name=row.get("name", ""),
            code=emp_id,
            department=row.get("department", ""),
            status=row.get("status", ""),
            safety_record=row.get("safetyPatrolRecord", ""),
            photo_url=row.get("photoUrl") or None,
        )
        await store.set(EMPLOYEES, emp_id, profile.to_document(), merge=True)
        imported += 1

    logger.log_operation("employees.import", "success", {"imported": imported, "skipped": skipped})
    return {"imported": imported, "skipped": skipped}
