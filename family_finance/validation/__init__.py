"""Form validation package."""

from family_finance.validation.schemas import (
    MAX_TRANSACTION_AMOUNT,
    CategoryForm,
    FamilyForm,
    FamilyMemberForm,
    FormIssue,
    FormValidationResult,
    SignInForm,
    SignUpForm,
    TransactionForm,
    validate_form,
)

__all__ = [
    "MAX_TRANSACTION_AMOUNT",
    "CategoryForm",
    "FamilyForm",
    "FamilyMemberForm",
    "FormIssue",
    "FormValidationResult",
    "SignInForm",
    "SignUpForm",
    "TransactionForm",
    "validate_form",
]
