"""
Record types stored in the document store and the collections holding them.
Field names on the stored documents follow the existing master-data export.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .store import SERVER_TIMESTAMP

USER_MAP = "userMap"
EMPLOYEES = "employees"
MESSAGES = "messages"


@dataclass
class Binding:
    user_id: str
    emp_id: Optional[str]
    updated_at: Optional[str] = None

    @classmethod
    def from_document(cls, user_id: str, doc: Dict[str, Any]) -> "Binding":
        return cls(user_id=user_id, emp_id=doc.get("lastEmpId") or None, updated_at=doc.get("updatedAt"))

    def to_document(self) -> Dict[str, Any]:
        return {"lastEmpId": self.emp_id, "updatedAt": SERVER_TIMESTAMP}


@dataclass
class EmployeeProfile:
    emp_id: str
    name: str = ""
    code: str = ""
    department: str = ""
    status: str = ""
    safety_record: str = ""
    photo_url: Optional[str] = None

    @classmethod
    def from_document(cls, emp_id: str, doc: Dict[str, Any]) -> "EmployeeProfile":
        return cls(
            emp_id=emp_id,
            name=doc.get("name", ""),
            code=doc.get("empId", emp_id),
            department=doc.get("department", ""),
            status=doc.get("status", ""),
            safety_record=doc.get("safetyPatrolRecord", ""),
            photo_url=doc.get("photoUrl") or None,
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "empId": self.code or self.emp_id,
            "department": self.department,
            "status": self.status,
            "safetyPatrolRecord": self.safety_record,
            "photoUrl": self.photo_url,
        }


@dataclass
class Note:
    user_id: str
    emp_id: str
    message: str
    source: str

    def to_document(self) -> Dict[str, Any]:
        return {
            "ts": SERVER_TIMESTAMP,
            "userId": self.user_id,
            "empId": self.emp_id,
            "message": self.message,
            "source": self.source,
        }
