"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class NotAuthorizedError(DomainError):
    """Entity exists but belongs to another user."""


class AccountNotFoundError(NotFoundError):
    """Referenced account does not exist."""


class FormatNotDetectedError(ValidationError):
    """No dialect matches the CSV headers and none was named explicitly."""


class RowParseError(ValidationError):
    """A single CSV row could not be turned into a draft."""


class MissingFieldError(RowParseError):
    """A required value is blank in a CSV row."""


class DuplicateTransactionError(ConflictError):
    """Candidate matches a transaction already in the ledger."""


class StoreFailure(DomainError):
    """Persistence failed inside a unit of work; the work was rolled back."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing ledger transaction."""
    return f"Transaction {transaction_id} not found"


def rule_not_found(rule_id: int) -> str:
    """Return message for missing categorization rule."""
    return f"Categorization rule {rule_id} not found"


def dialect_not_found(name: str) -> str:
    """Return message for an unknown dialect name."""
    return f"CSV dialect '{name}' not found"


def not_authorized(kind: str, entity_id: int) -> str:
    """Return message for an entity owned by another user."""
    return f"Not authorized to access {kind} {entity_id}"


def staged_not_found(ids: list[int]) -> str:
    """Return message for staged ids the user does not own."""
    joined = ", ".join(str(i) for i in ids)
    plural = "s" if len(ids) != 1 else ""
    return f"Staged transaction{plural} not found: {joined}"


def format_not_detected(headers: list[str]) -> str:
    """Return message when no dialect matches a header row."""
    return (
        "Unsupported CSV format. Could not detect bank format from headers: "
        + ", ".join(headers)
    )
