"""Tests for rule, recategorize, duplicates and audit commands."""

from datetime import date
from decimal import Decimal

from sqlalchemy import text

from ledgerflow.cli.main import cli

from conftest import OTHER_USER, USER


def _invoke(cli_runner, temp_db, *args, user=USER, input=None):
    return cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "--user", user, *args], input=input
    )


def _committed(stage, ledger_service, **kwargs):
    (txn,) = ledger_service.commit([stage(**kwargs).id], kwargs.get("user_id", USER))
    return txn


class TestRuleCommands:
    """Tests for the rule command group."""

    def test_rule_add_and_list(self, cli_runner, temp_db):
        result = _invoke(
            cli_runner,
            temp_db,
            "rule",
            "add",
            "WALMART",
            "--vendor",
            "Walmart",
            "--category",
            "shopping",
            "--subcategory",
            "retail",
        )
        assert result.exit_code == 0
        assert "Created rule" in result.output
        assert "WALMART -> Shopping" in result.output

        listed = _invoke(cli_runner, temp_db, "rule", "list")
        assert "Shopping / Retail" in listed.output
        assert "user" in listed.output

    def test_rule_list_empty(self, cli_runner, temp_db):
        assert "No rules found." in _invoke(cli_runner, temp_db, "rule", "list").output

    def test_rule_add_bad_confidence(self, cli_runner, temp_db):
        result = _invoke(
            cli_runner, temp_db, "rule", "add", "X", "--vendor", "V", "--category", "C", "--confidence", "2"
        )
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_rule_update(self, cli_runner, temp_db, categorization_service):
        rule = categorization_service.add_rule(USER, "WALMART", "Walmart", "Shopping")

        result = _invoke(cli_runner, temp_db, "rule", "update", str(rule.id), "--category", "groceries")

        assert result.exit_code == 0
        assert f"Updated rule {rule.id}" in result.output
        updated = temp_db.get_rule(rule.id)
        assert updated.category == "Groceries"
        assert updated.vendor == "Walmart"

    def test_rule_remove(self, cli_runner, temp_db, categorization_service):
        rule = categorization_service.add_rule(USER, "WALMART", "Walmart", "Shopping")

        result = _invoke(cli_runner, temp_db, "rule", "remove", str(rule.id))

        assert result.exit_code == 0
        assert f"Removed rule {rule.id}" in result.output
        assert temp_db.get_rule(rule.id) is None

    def test_rule_remove_other_users(self, cli_runner, temp_db, categorization_service):
        rule = categorization_service.add_rule(OTHER_USER, "WALMART", "Walmart", "Shopping")

        result = _invoke(cli_runner, temp_db, "rule", "remove", str(rule.id))

        assert result.exit_code == 1
        assert temp_db.get_rule(rule.id) is not None

    def test_rule_suggest(self, cli_runner, temp_db, categorization_service):
        rule = categorization_service.add_rule(USER, "WALMART", "Walmart", "Shopping", subcategory="Retail")

        result = _invoke(cli_runner, temp_db, "rule", "suggest", "WALMART SUPERCENTER #1234")

        assert result.exit_code == 0
        assert "Walmart (0.80, user)" in result.output
        assert "Shopping / Retail (0.80, user)" in result.output
        assert temp_db.get_rule(rule.id).use_count == 1

    def test_rule_suggest_no_match(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "rule", "suggest", "ANYTHING")
        assert "No matching rules." in result.output


class TestRecategorizeCommand:
    """Tests for the recategorize command."""

    def test_recategorize(self, cli_runner, temp_db, stage, ledger_service):
        txn = _committed(stage, ledger_service)

        result = _invoke(cli_runner, temp_db, "recategorize", str(txn.id), "Dining")

        assert result.exit_code == 0
        assert f"Transaction {txn.id}: Groceries -> Dining" in result.output
        assert temp_db.get_transaction(txn.id).category == "Dining"
        assert len(temp_db.list_category_change_logs(transaction_id=txn.id)) == 1

    def test_recategorize_unchanged(self, cli_runner, temp_db, stage, ledger_service):
        txn = _committed(stage, ledger_service)

        result = _invoke(cli_runner, temp_db, "recategorize", str(txn.id), "groceries")

        assert result.exit_code == 0
        assert "is already in 'Groceries'" in result.output
        assert temp_db.list_category_change_logs() == []

    def test_recategorize_with_learn(self, cli_runner, temp_db, stage, ledger_service, checking_account):
        txn = _committed(
            stage,
            ledger_service,
            account_id=checking_account.id,
            description="CHIPOTLE NYC #456",
            original_description="CHIPOTLE NYC #456",
        )

        result = _invoke(cli_runner, temp_db, "recategorize", str(txn.id), "Dining", "--learn")

        assert result.exit_code == 0
        assert "Learned a rule" in result.output
        (rule,) = temp_db.list_rules(USER)
        assert rule.pattern == "CHIPOTLE NYC #*"
        assert rule.category == "Dining"

    def test_recategorize_other_users_transaction(self, cli_runner, temp_db, stage, ledger_service):
        txn = _committed(stage, ledger_service, user_id=OTHER_USER)

        result = _invoke(cli_runner, temp_db, "recategorize", str(txn.id), "Dining")

        assert result.exit_code == 1
        assert "Not authorized" in result.output


class TestDuplicateCommands:
    """Tests for the duplicates command group."""

    def _seed(self, temp_db, account_id):
        session = temp_db._get_session()
        session.execute(text("DROP INDEX uq_transaction_dedup_key"))
        session.commit()
        for _ in range(2):
            temp_db.create_transaction(
                amount=Decimal("4.50"),
                type="expense",
                category="Dining",
                description="Coffee",
                date=date(2024, 1, 15),
                user_id=USER,
                source="csv",
                account_id=account_id,
            )
            temp_db.adjust_account_balance(account_id, Decimal("-4.50"))

    def test_list_none(self, cli_runner, temp_db):
        assert "No duplicates found." in _invoke(cli_runner, temp_db, "duplicates", "list").output

    def test_list_and_remove(self, cli_runner, temp_db, checking_account):
        self._seed(temp_db, checking_account.id)

        listed = _invoke(cli_runner, temp_db, "duplicates", "list", "--account", "Everyday Checking")
        assert "keep #1, duplicates: #2" in listed.output

        result = _invoke(cli_runner, temp_db, "duplicates", "remove", "--yes")

        assert result.exit_code == 0
        assert "Removed 1 duplicate transactions" in result.output
        assert temp_db.get_account(checking_account.id).balance == Decimal("995.50")

    def test_remove_declined(self, cli_runner, temp_db, checking_account):
        self._seed(temp_db, checking_account.id)

        result = _invoke(cli_runner, temp_db, "duplicates", "remove", input="n\n")

        assert "Removal cancelled." in result.output
        assert len(temp_db.list_transactions(user_id=USER)) == 2


class TestAuditCommands:
    """Tests for the audit command group."""

    def test_report_empty(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "audit", "report")
        assert "No category changes to analyze." in result.output

    def test_history_report_and_apply(self, cli_runner, temp_db, stage, ledger_service):
        txns = [
            _committed(stage, ledger_service, description="Starbucks Coffee", txn_date=date(2024, 1, day))
            for day in (1, 2, 3)
        ]
        for txn in txns:
            ledger_service.recategorize(txn.id, "Dining", USER)

        history = _invoke(cli_runner, temp_db, "audit", "history", str(txns[0].id))
        assert "Groceries -> Dining" in history.output

        report = _invoke(cli_runner, temp_db, "audit", "report")
        assert "Found 3 category changes." in report.output
        assert '3 changes: "Starbucks Coffee" from "Groceries" to "Dining"' in report.output
        assert "Dining: STARBUCKS, COFFEE" in report.output

        applied = _invoke(cli_runner, temp_db, "audit", "apply")
        assert "Created 2 suggested rules" in applied.output
        assert {r.pattern for r in temp_db.list_rules(USER)} == {"STARBUCKS", "COFFEE"}
