"""Account domain service."""

from decimal import Decimal
from typing import Optional

from ledgerflow.database.base import Database
from ledgerflow.domain.entities import Account as AccountEntity, AccountKind
from ledgerflow.domain.errors import (
    AccountNotFoundError,
    ConflictError,
    NotAuthorizedError,
    ValidationError,
    account_not_found,
    not_authorized,
)


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        user_id: str,
        name: str,
        kind: AccountKind | str,
        institution: Optional[str] = None,
        last_four: Optional[str] = None,
        color: Optional[str] = None,
        balance: Decimal = Decimal("0"),
    ) -> int:
        """Create a new account.

        Args:
            user_id: Owner of the account
            name: Account name, unique per user
            kind: Account kind ('debit' is accepted for checking)
            institution: Optional bank name
            last_four: Optional last four digits of the account number
            color: Optional display color
            balance: Opening balance

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is blank, the kind is unknown or
                last_four is not four digits
            ConflictError: If the user already has an account with this name
        """
        name = name.strip() if name else ""
        if not name:
            raise ValidationError("Account name cannot be empty")
        account_kind = AccountKind.parse(kind)
        if last_four is not None and not (len(last_four) == 4 and last_four.isdigit()):
            raise ValidationError("Last four must be exactly four digits")

        for acc in self.db.list_accounts(user_id):
            if acc.name.lower() == name.lower():
                raise ConflictError(f"Account with name '{name}' already exists")

        return self.db.create_account(
            user_id=user_id,
            name=name,
            kind=account_kind.value,
            institution=institution,
            last_four=last_four,
            color=color,
            balance=Decimal(balance),
        )

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def get_owned_account(self, account_id: int, user_id: str) -> AccountEntity:
        """Get an account that must belong to the user.

        Raises:
            AccountNotFoundError: If the account does not exist
            NotAuthorizedError: If it belongs to another user
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_not_found(account_id))
        if account.user_id != user_id:
            raise NotAuthorizedError(not_authorized("account", account_id))
        return account

    def list_accounts(self, user_id: str) -> list[AccountEntity]:
        """List a user's accounts.

        Returns:
            List of account entities ordered by name
        """
        return self.db.list_accounts(user_id)
