# src/orgtree/core/formatter.py
"""
Row rendering for the org listing.

Fields are joined with ", " and never quoted, so a value that itself contains
", " (e.g. "Smith, Jane") shifts the columns of its row. Consumers that need
strict CSV must post-process.
"""
from __future__ import annotations
from typing import List, Tuple

from orgtree.core.models import DisplayRecord, OrgRow, UserRecord

DELIMITER = ", "
NO_MANAGER = ("none", "none")

COLUMNS = (
    "id", "display_name", "mail", "job_title", "department", "office_location",
    "employment_type", "location", "manager_id", "manager_display_name",
)
HEADER = DELIMITER.join(COLUMNS)

VENDOR_KEYWORDS = ("CONSULT", "OUTSOURCE", "Outsource")
OFFSHORE_KEYWORDS = ("Off-Shore", "Off-Site")


def employment_type(rec: DisplayRecord) -> str:
    return "Vendor" if any(kw in rec.job_title for kw in VENDOR_KEYWORDS) else "Employee"


def location_category(rec: DisplayRecord) -> str:
    return "Off-Shore" if any(kw in rec.office_location for kw in OFFSHORE_KEYWORDS) else "On-Site"


def classify(user: UserRecord) -> Tuple[str, str]:
    rec = DisplayRecord.from_user(user)
    return employment_type(rec), location_category(rec)


def user_fields(user: UserRecord) -> List[str]:
    rec = DisplayRecord.from_user(user)
    return [
        rec.id, rec.display_name, rec.mail, rec.job_title, rec.department,
        rec.office_location, employment_type(rec), location_category(rec),
    ]


def format_user(user: UserRecord) -> str:
    return DELIMITER.join(user_fields(user))


def format_row(row: OrgRow) -> str:
    mgr = NO_MANAGER if row.manager is None else (row.manager.id, row.manager.display_name)
    return DELIMITER.join([*user_fields(row.user), *mgr])


def parse_row(line: str) -> List[str]:
    return line.rstrip("\r\n").split(DELIMITER)
