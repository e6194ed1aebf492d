"""Department and issue catalog behind the #sprout menu.

The catalog is read once from YAML and never mutated afterwards. Anything
malformed in the source file is a startup error (CatalogError), not a
runtime one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml

from app.config import settings
from app.logging_config import get_logger

logger = get_logger("catalog_service")

DEPARTMENT_CODES = ("C", "I", "N", "S", "P", "W")
REQUIRED_DEPARTMENT_NUMBERS = ("01", "02", "03", "04", "05", "06", "07")
OTHER_DEPARTMENT_NUMBER = "07"
MIN_ISSUE_NUMBER = 1
MAX_ISSUE_NUMBER = 10

DEFAULT_MENU_HEADER = "Please choose a department:"
DEFAULT_MENU_FOOTER = "Reply with #sprout followed by the department number, e.g. #sprout 01"
DEFAULT_ISSUE_FOOTER = "Reply with #sprout followed by the issue code, e.g. #sprout {example}"


class CatalogError(Exception):
    """Raised when the catalog source is missing or malformed."""


@dataclass(frozen=True)
class Issue:
    department_code: str
    number: int
    description: str

    @property
    def code(self) -> str:
        return f"{self.department_code}{self.number}"

    @property
    def label(self) -> str:
        return f"{self.code} - {self.description}"


@dataclass(frozen=True)
class Department:
    number: str
    name: str
    code: Optional[str] = None
    issues: tuple[Issue, ...] = field(default_factory=tuple)
    description: Optional[str] = None  # only the "Other" department has one

    @property
    def is_other(self) -> bool:
        return self.code is None


class Catalog:
    def __init__(
        self,
        departments: list[Department],
        *,
        menu_header: str = DEFAULT_MENU_HEADER,
        menu_footer: str = DEFAULT_MENU_FOOTER,
        issue_footer: str = DEFAULT_ISSUE_FOOTER,
    ):
        self._by_number = {dept.number: dept for dept in departments}
        self._by_code = {dept.code: dept for dept in departments if dept.code}
        self._issues = {
            (issue.department_code, issue.number): issue for dept in departments for issue in dept.issues
        }
        self.menu_header = menu_header
        self.menu_footer = menu_footer
        self.issue_footer = issue_footer

    @property
    def departments(self) -> list[Department]:
        return [self._by_number[number] for number in sorted(self._by_number)]

    @property
    def other(self) -> Department:
        return self._by_number[OTHER_DEPARTMENT_NUMBER]

    def resolve_department_by_number(self, number: str) -> Optional[Department]:
        return self._by_number.get((number or "").strip())

    def resolve_department_by_code(self, letter: str) -> Optional[Department]:
        return self._by_code.get((letter or "").strip().upper())

    def find_issue(self, letter: str, number: int) -> Optional[Issue]:
        return self._issues.get(((letter or "").strip().upper(), number))

    def issues_of(self, department: Department) -> tuple[Issue, ...]:
        """Issues in source order; numbering may have gaps."""
        return department.issues


def _parse_issues(code: str, raw_issues: Any) -> tuple[Issue, ...]:
    if not isinstance(raw_issues, dict) or not raw_issues:
        raise CatalogError(f"Department {code} has no issues")

    issues = []
    for raw_number, raw_description in raw_issues.items():
        try:
            number = int(raw_number)
        except (TypeError, ValueError):
            raise CatalogError(f"Issue number {raw_number!r} in department {code} is not an integer")
        if not MIN_ISSUE_NUMBER <= number <= MAX_ISSUE_NUMBER:
            raise CatalogError(f"Issue {code}{number} is outside {MIN_ISSUE_NUMBER}..{MAX_ISSUE_NUMBER}")
        description = str(raw_description or "").strip()
        if not description:
            raise CatalogError(f"Issue {code}{number} has no description")
        issues.append(Issue(department_code=code, number=number, description=description))
    return tuple(issues)


def parse_catalog(data: Any) -> Catalog:
    """Build a Catalog from already-parsed YAML data."""
    if not isinstance(data, dict):
        raise CatalogError("Catalog root must be a mapping")

    raw_departments = data.get("departments")
    if not isinstance(raw_departments, list):
        raise CatalogError("Catalog has no 'departments' list")

    departments: list[Department] = []
    seen_numbers: set[str] = set()
    seen_codes: set[str] = set()

    for raw in raw_departments:
        if not isinstance(raw, dict):
            raise CatalogError(f"Department entry must be a mapping, got {raw!r}")
        number = str(raw.get("number") or "").strip().zfill(2)
        name = str(raw.get("name") or "").strip()
        if number not in REQUIRED_DEPARTMENT_NUMBERS:
            raise CatalogError(f"Unknown department number {number!r}")
        if number in seen_numbers:
            raise CatalogError(f"Duplicate department number {number}")
        if not name:
            raise CatalogError(f"Department {number} has no name")
        seen_numbers.add(number)

        if number == OTHER_DEPARTMENT_NUMBER:
            description = str(raw.get("description") or "").strip()
            if not description:
                raise CatalogError("The 'Other' department needs a description")
            departments.append(Department(number=number, name=name, description=description))
            continue

        code = str(raw.get("code") or "").strip().upper()
        if code not in DEPARTMENT_CODES:
            raise CatalogError(f"Department {number} has invalid code {code!r}")
        if code in seen_codes:
            raise CatalogError(f"Duplicate department code {code}")
        seen_codes.add(code)

        issues = _parse_issues(code, raw.get("issues"))
        departments.append(Department(number=number, name=name, code=code, issues=issues))

    missing = [number for number in REQUIRED_DEPARTMENT_NUMBERS if number not in seen_numbers]
    if missing:
        raise CatalogError(f"Catalog is missing departments: {', '.join(missing)}")

    menu = data.get("menu") if isinstance(data.get("menu"), dict) else {}
    return Catalog(
        departments,
        menu_header=str(menu.get("header") or DEFAULT_MENU_HEADER),
        menu_footer=str(menu.get("footer") or DEFAULT_MENU_FOOTER),
        issue_footer=str(data.get("issue_footer") or DEFAULT_ISSUE_FOOTER),
    )


def load_catalog(path: Path | str) -> Catalog:
    path = Path(path)
    if not path.exists():
        raise CatalogError(f"Catalog file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise CatalogError(f"Catalog file is not valid YAML: {exc}") from exc
    catalog = parse_catalog(data)
    logger.info(
        "Catalog loaded",
        extra={
            "context": {
                "path": str(path),
                "departments": len(catalog.departments),
                "issues": sum(len(dept.issues) for dept in catalog.departments),
            }
        },
    )
    return catalog


@lru_cache(maxsize=2)
def get_catalog(path: Optional[str] = None) -> Catalog:
    return load_catalog(path or settings.catalog_path)
