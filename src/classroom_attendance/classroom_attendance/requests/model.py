from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class EnrollmentRequest:
    """Staged student -> subject enrollment, one per (subject, student)."""

    email: str
    name: str
    scholarID: Optional[str]
    timestamp: int

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "EnrollmentRequest":
        data = json.loads(raw)
        return cls(
            email=str(data["email"]),
            name=str(data.get("name") or ""),
            scholarID=data.get("scholarID"),
            timestamp=int(data.get("timestamp") or 0),
        )


@dataclass(frozen=True)
class CollaborationRequest:
    """Staged invitation for a faculty member to co-own a subject.

    ``email``/``name`` identify the requester, not the invited faculty; the
    invitee is implied by the set the blob lives in.
    """

    subjectID: str
    email: str
    name: str
    department: str
    subjectName: str
    section: str
    programme: str
    semester: str

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "CollaborationRequest":
        data = json.loads(raw)
        return cls(**{k: str(data.get(k) or "") for k in cls.__dataclass_fields__})
