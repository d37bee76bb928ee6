"""Tests for CSV dialect detection and the dialect service."""

import pytest

from ledgerflow.domain.dialects import (
    BUILTIN_DIALECTS,
    DialectRegistry,
    default_registry,
)
from ledgerflow.domain.entities import AmountSign, ColumnMapping, Dialect
from ledgerflow.domain.errors import (
    ConflictError,
    FormatNotDetectedError,
    NotFoundError,
    ValidationError,
)


def _dialect(name, headers, date="Date", description="Description", amount="Amount"):
    return Dialect(
        name=name,
        column_mapping=ColumnMapping(date=date, description=description, amount=amount),
        detection_headers=frozenset(headers),
    )


class TestDetection:
    """Tests for DialectRegistry.detect."""

    def test_amex_headers(self):
        headers = ["Date", "Description", "Card Member", "Account #", "Amount"]
        assert default_registry().detect(headers).name == "Amex"

    def test_chase_credit_headers(self):
        headers = ["Transaction Date", "Post Date", "Description", "Category", "Type", "Amount", "Memo"]
        assert default_registry().detect(headers).name == "Chase Credit"

    def test_chase_checking_headers(self):
        headers = ["Details", "Posting Date", "Description", "Amount", "Type", "Balance", "Check or Slip #"]
        assert default_registry().detect(headers).name == "Chase Checking"

    def test_bank_of_america_headers(self):
        headers = ["Date", "Description", "Amount", "Running Bal."]
        assert default_registry().detect(headers).name == "Bank of America"

    def test_generic_fallback(self):
        assert default_registry().detect(["Date", "Description", "Amount"]).name == "Generic"

    def test_headers_are_trimmed_and_case_insensitive(self):
        headers = [" date ", "DESCRIPTION", "card member", "Account #", "amount"]
        assert default_registry().detect(headers).name == "Amex"

    def test_not_detected(self):
        with pytest.raises(FormatNotDetectedError) as excinfo:
            default_registry().detect(["Posted", "Memo", "Value"])
        assert "Could not detect bank format" in str(excinfo.value)

    def test_detection_independent_of_registration_order(self):
        """The most specific dialect wins whatever order dialects were added in."""
        headers = ["Date", "Description", "Amount", "Card Member", "Account #"]
        forward = DialectRegistry(BUILTIN_DIALECTS)
        backward = DialectRegistry(reversed(BUILTIN_DIALECTS))
        assert forward.detect(headers).name == backward.detect(headers).name == "Amex"

    def test_tie_broken_by_name(self):
        headers = ["Date", "Description", "Amount", "Extra A", "Extra B"]
        b = _dialect("Bravo", {"Date", "Description", "Amount", "Extra B"})
        a = _dialect("alpha", {"Date", "Description", "Amount", "Extra A"})
        assert DialectRegistry([b, a]).detect(headers).name == "alpha"
        assert DialectRegistry([a, b]).detect(headers).name == "alpha"


class TestRegistry:
    """Tests for registry bookkeeping."""

    def test_builtin_names(self):
        assert default_registry().names() == [
            "Amex",
            "Chase Credit",
            "Chase Checking",
            "Bank of America",
            "Generic",
        ]

    def test_get_is_case_insensitive(self):
        assert default_registry().get("chase credit").name == "Chase Credit"

    def test_get_unknown(self):
        with pytest.raises(NotFoundError):
            default_registry().get("Nope Bank")

    def test_duplicate_name_rejected(self):
        registry = default_registry()
        with pytest.raises(ConflictError):
            registry.register(_dialect("AMEX", {"Date", "Description", "Amount"}))

    def test_empty_detection_headers_rejected(self):
        with pytest.raises(ValidationError):
            DialectRegistry().register(_dialect("Empty", set()))

    def test_mapped_column_must_be_detection_header(self):
        with pytest.raises(ValidationError) as excinfo:
            DialectRegistry().register(_dialect("Broken", {"Date", "Amount"}))
        assert "Description" in str(excinfo.value)


class TestDialectService:
    """Tests for persisted user dialects."""

    def test_register_and_detect(self, dialect_service):
        dialect = dialect_service.register_dialect(
            name="Credit Union",
            date_column="Posted",
            description_column="Memo",
            amount_column="Value",
            date_format="%Y-%m-%d",
            amount_sign="parentheses-is-expense",
        )
        assert dialect.amount_sign is AmountSign.PARENTHESES_IS_EXPENSE
        assert dialect.detection_headers == frozenset({"Posted", "Memo", "Value"})

        registry = dialect_service.build_registry()
        detected = registry.detect(["Posted", "Memo", "Value"])
        assert detected.name == "Credit Union"
        assert detected.date_format == "%Y-%m-%d"
        assert not detected.builtin

    def test_list_includes_builtins_then_stored(self, dialect_service):
        dialect_service.register_dialect(
            name="Credit Union", date_column="Posted", description_column="Memo", amount_column="Value"
        )
        names = [d.name for d in dialect_service.list_dialects()]
        assert names[:5] == default_registry().names()
        assert names[-1] == "Credit Union"

    def test_register_builtin_name_conflicts(self, dialect_service):
        with pytest.raises(ConflictError):
            dialect_service.register_dialect(
                name="generic", date_column="D", description_column="X", amount_column="A"
            )

    def test_register_invalid_sign(self, dialect_service):
        with pytest.raises(ValidationError):
            dialect_service.register_dialect(
                name="Odd", date_column="D", description_column="X", amount_column="A",
                amount_sign="sideways",
            )

    def test_delete(self, dialect_service):
        dialect_service.register_dialect(
            name="Credit Union", date_column="Posted", description_column="Memo", amount_column="Value"
        )
        dialect_service.delete_dialect("credit union")
        assert dialect_service.build_registry().find("Credit Union") is None

    def test_delete_builtin_rejected(self, dialect_service):
        with pytest.raises(ValidationError):
            dialect_service.delete_dialect("Amex")

    def test_delete_unknown(self, dialect_service):
        with pytest.raises(NotFoundError):
            dialect_service.delete_dialect("Nope Bank")
