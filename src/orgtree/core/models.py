from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

UNKNOWN = "unknown"

# Graph property names, in the order they are selected
GRAPH_FIELDS = ("id", "displayName", "jobTitle", "department", "mail", "officeLocation")


@dataclass(frozen=True)
class UserRecord:
    id: str
    display_name: str
    job_title: Optional[str] = None
    department: Optional[str] = None
    mail: Optional[str] = None
    office_location: Optional[str] = None

    @classmethod
    def from_graph(cls, item: Mapping[str, Any]) -> "UserRecord":
        """Build from a Graph user object. Raises ValueError on a missing id/displayName."""
        if not isinstance(item, Mapping):
            raise ValueError(f"expected a JSON object, got {type(item).__name__}")
        uid = item.get("id")
        name = item.get("displayName")
        if not isinstance(uid, str) or not uid:
            raise ValueError("user record has no id")
        if not isinstance(name, str):
            raise ValueError(f"user {uid} has no displayName")
        return cls(
            id=uid,
            display_name=name,
            job_title=_opt_str(item.get("jobTitle")),
            department=_opt_str(item.get("department")),
            mail=_opt_str(item.get("mail")),
            office_location=_opt_str(item.get("officeLocation")),
        )

    @property
    def email(self) -> str:
        return self.mail if self.mail is not None else UNKNOWN


@dataclass(frozen=True)
class PagedResult:
    records: Tuple[UserRecord, ...]
    next_link: Optional[str] = None

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class DisplayRecord:
    """A UserRecord with every optional field filled in."""
    id: str
    display_name: str
    mail: str
    job_title: str
    department: str
    office_location: str

    @classmethod
    def from_user(cls, user: UserRecord) -> "DisplayRecord":
        return cls(
            id=user.id,
            display_name=user.display_name,
            mail=_or_unknown(user.mail),
            job_title=_or_unknown(user.job_title),
            department=_or_unknown(user.department),
            office_location=_or_unknown(user.office_location),
        )


@dataclass(frozen=True)
class OrgRow:
    """One emitted edge: a user and the manager whose report list returned it."""
    user: UserRecord
    manager: Optional[UserRecord] = None

    @property
    def is_root(self) -> bool:
        return self.manager is None


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _or_unknown(value: Optional[str]) -> str:
    return UNKNOWN if value is None else value
