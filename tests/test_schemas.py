"""Tests for form validation schemas."""

from decimal import Decimal

import pytest

from family_finance.config import get_settings
from family_finance.validation import (
    CategoryForm,
    FamilyForm,
    FamilyMemberForm,
    SignInForm,
    SignUpForm,
    TransactionForm,
    validate_form,
)

CATEGORY_ID = "44444444-4444-4444-8444-444444444444"
MEMBER_ID = "55555555-5555-4555-8555-555555555555"


def transaction(**overrides):
    data = {
        "type": "expense",
        "description": "Groceries",
        "amount": "150.75",
        "category_id": CATEGORY_ID,
        "family_member_id": MEMBER_ID,
        "date": "2026-06-01",
    }
    data.update(overrides)
    return data


class TestTransactionForm:
    """Tests for the transaction form."""

    def test_valid(self):
        result = validate_form(TransactionForm, transaction(observation="weekly shop"))
        assert result.is_valid
        assert result.data.amount == Decimal("150.75")
        assert result.issues == []

    @pytest.mark.parametrize("amount", ["0", "-1", "1000000", "999999.999"])
    def test_amount_out_of_range(self, amount):
        result = validate_form(TransactionForm, transaction(amount=amount))
        assert not result.is_valid
        assert result.error_fields == ["amount"]

    def test_amount_upper_bound_inclusive(self):
        assert validate_form(TransactionForm, transaction(amount="999999.99")).is_valid

    @pytest.mark.parametrize("description", ["", "   ", "x" * 256])
    def test_description_length(self, description):
        result = validate_form(TransactionForm, transaction(description=description))
        assert result.issues_for("description")

    def test_ids_must_be_uuids(self):
        result = validate_form(TransactionForm, transaction(category_id="food", family_member_id="ana"))
        assert result.error_fields == ["category_id", "family_member_id"]

    def test_date_must_parse(self):
        assert not validate_form(TransactionForm, transaction(date="yesterday")).is_valid

    def test_observation_length(self):
        assert not validate_form(TransactionForm, transaction(observation="x" * 501)).is_valid

    def test_type_must_be_known(self):
        assert validate_form(TransactionForm, transaction(type="transfer")).error_fields == ["type"]

    def test_missing_fields_are_reported(self):
        result = validate_form(TransactionForm, {})
        assert {"type", "description", "amount", "date"} <= set(result.error_fields)
        assert all(i.issue_type == "missing" for i in result.issues)


class TestOtherForms:
    """Tests for the remaining forms."""

    @pytest.mark.parametrize("role", ["pai", "mae", "filho", "filha", "outro"])
    def test_member_roles(self, role):
        assert validate_form(FamilyMemberForm, {"name": "Ana", "role": role}).is_valid

    def test_member_unknown_role(self):
        assert validate_form(FamilyMemberForm, {"name": "Ana", "role": "tio"}).error_fields == ["role"]

    def test_member_name_length(self):
        assert not validate_form(FamilyMemberForm, {"name": "x" * 101, "role": "pai"}).is_valid

    @pytest.mark.parametrize("color,valid", [
        ("#A1B2C3", True),
        ("#a1b2c3", True),
        ("#6366f1", True),
        ("A1B2C3", False),
        ("#FFF", False),
        ("#GGGGGG", False),
    ])
    def test_category_color(self, color, valid):
        result = validate_form(CategoryForm, {"name": "Food", "type": "expense", "color": color})
        assert result.is_valid is valid

    def test_category_color_is_optional(self):
        result = validate_form(CategoryForm, {"name": "Food", "type": "expense"})
        assert result.is_valid
        assert result.data.color is None

    def test_default_category_color_passes(self):
        color = get_settings().app.default_category_color
        assert validate_form(CategoryForm, {"name": "Food", "type": "expense", "color": color}).is_valid

    def test_category_name_length(self):
        result = validate_form(CategoryForm, {"name": "x" * 51, "type": "both", "color": "#000000"})
        assert result.error_fields == ["name"]

    def test_family_name_required(self):
        assert not validate_form(FamilyForm, {"name": ""}).is_valid

    def test_sign_up(self):
        data = {
            "email": "ana@example.com",
            "password": "secret1",
            "full_name": "Ana Silva",
            "family_name": "Silva",
        }
        assert validate_form(SignUpForm, data).is_valid
        assert validate_form(SignUpForm, {**data, "password": "12345"}).error_fields == ["password"]
        assert validate_form(SignUpForm, {**data, "email": "not-an-email"}).error_fields == ["email"]

    def test_sign_in(self):
        assert validate_form(SignInForm, {"email": "ana@example.com", "password": "x"}).is_valid
        assert validate_form(SignInForm, {"email": "ana@example.com", "password": ""}).error_fields == ["password"]
