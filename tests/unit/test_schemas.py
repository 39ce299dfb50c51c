from datetime import date

import pytest
from pydantic import ValidationError

from signoff.api.schemas.auth import RegisterRequest
from signoff.api.schemas.courses import CourseCreate
from signoff.domain.models import Company, CourseTarget


def test_course_create_defaults_to_sev_target() -> None:
    payload = CourseCreate(name="Fire drill", start=date(2024, 1, 1), end=date(2024, 1, 1))

    assert payload.target is CourseTarget.SEV
    assert payload.is_active is True
    assert payload.assigned_user_ids == []


def test_course_create_rejects_inverted_window() -> None:
    with pytest.raises(ValidationError):
        CourseCreate(name="Backwards", start=date(2024, 2, 1), end=date(2024, 1, 1))


def test_explicit_course_requires_user_ids() -> None:
    with pytest.raises(ValidationError):
        CourseCreate(
            name="Targeted", start=date(2024, 1, 1), end=date(2024, 1, 31), target="target"
        )


@pytest.mark.parametrize(
    ("user_id", "company"),
    [("10000001", "sev"), ("200000000001", "vendor")],
)
def test_register_accepts_matching_id(user_id: str, company: str) -> None:
    request = RegisterRequest(user_id=user_id, name="Someone", company=company)

    assert request.company is Company(company)
    assert request.part == "N/A"


@pytest.mark.parametrize(
    ("user_id", "company"),
    [("10000001", "vendor"), ("200000000001", "sev"), ("1234567", "sev"), ("1000000A", "sev")],
)
def test_register_rejects_mismatched_id(user_id: str, company: str) -> None:
    with pytest.raises(ValidationError):
        RegisterRequest(user_id=user_id, name="Someone", company=company)
