"""
Form Validation Schemas

DESIGN DECISION: Forms are checked here, before any repository call.
Repositories trust their input's business rules and only enforce
scoping, so this is the one place field limits live.

`validate_form` never raises for bad input. It turns pydantic errors
into one `FormIssue` per field so a form can show them next to the
inputs.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Mapping, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError

from family_finance.models.finance import CategoryType, FamilyRole, TransactionType

MAX_TRANSACTION_AMOUNT = Decimal("999999.99")

FormT = TypeVar("FormT", bound=BaseModel)


# =============================================================================
# FORMS
# =============================================================================

class FormModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class TransactionForm(FormModel):
    type: TransactionType
    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, le=MAX_TRANSACTION_AMOUNT)
    category_id: UUID
    family_member_id: UUID
    date: dt.date
    observation: Optional[str] = Field(default=None, max_length=500)


class FamilyMemberForm(FormModel):
    name: str = Field(..., min_length=1, max_length=100)
    role: FamilyRole


class CategoryForm(FormModel):
    name: str = Field(..., min_length=1, max_length=50)
    type: CategoryType
    icon: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")


class FamilyForm(FormModel):
    name: str = Field(..., min_length=1, max_length=100)


class SignUpForm(FormModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=100)
    family_name: str = Field(..., min_length=1, max_length=100)


class SignInForm(FormModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


# =============================================================================
# RESULT
# =============================================================================

class FormIssue(BaseModel):
    """A single problem with one form field."""

    field: str = Field(
        ...,
        description="Dotted path of the field, or '__form__'"
    )
    issue_type: str = Field(
        ...,
        description="Pydantic error type (e.g., 'string_too_long', 'missing')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


class FormValidationResult(BaseModel):
    """Outcome of validating one form submission."""

    is_valid: bool
    data: Optional[BaseModel] = None
    issues: list[FormIssue] = Field(default_factory=list)

    def issues_for(self, field: str) -> list[FormIssue]:
        return [i for i in self.issues if i.field == field]

    @property
    def error_fields(self) -> list[str]:
        return sorted({i.field for i in self.issues})


def _issue_from_error(error: Mapping[str, Any]) -> FormIssue:
    location = ".".join(str(part) for part in error.get("loc", ())) or "__form__"
    return FormIssue(
        field=location,
        issue_type=error.get("type", "invalid"),
        message=error.get("msg", "Invalid value"),
    )


def validate_form(schema: type[FormT], data: Mapping[str, Any]) -> FormValidationResult:
    """
    Validate submitted form data against `schema`.

    Returns:
        FormValidationResult with the parsed model when valid, or the
        field-level issues when not
    """
    try:
        parsed = schema.model_validate(dict(data))
    except ValidationError as e:
        return FormValidationResult(
            is_valid=False,
            issues=[_issue_from_error(err) for err in e.errors()],
        )
    return FormValidationResult(is_valid=True, data=parsed)
