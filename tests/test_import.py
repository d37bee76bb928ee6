"""Tests for the import command and staged review commands."""

from decimal import Decimal

from ledgerflow.cli.main import cli

from conftest import OTHER_USER, USER


def _invoke(cli_runner, temp_db, *args, user=USER):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "--user", user, *args])


def _import_amex(cli_runner, temp_db, fixtures_dir, account="Blue Cash"):
    return _invoke(
        cli_runner, temp_db, "import", str(fixtures_dir / "amex_credit.csv"), "--account", account
    )


def test_import_stages_rows(cli_runner, temp_db, credit_account, fixtures_dir):
    result = _import_amex(cli_runner, temp_db, fixtures_dir)

    assert result.exit_code == 0
    assert "Import complete (Amex)" in result.output
    assert "Staged: 3 transactions" in result.output
    assert "Skipped: 0 duplicates" in result.output
    assert len(temp_db.list_staging_transactions(USER)) == 3
    assert temp_db.list_transactions() == []


def test_import_with_explicit_format(cli_runner, temp_db, checking_account, fixtures_dir):
    result = _invoke(
        cli_runner,
        temp_db,
        "import",
        str(fixtures_dir / "generic_semicolon.csv"),
        "--account",
        str(checking_account.id),
        "--format",
        "generic",
    )

    assert result.exit_code == 0
    assert "Import complete (Generic)" in result.output
    assert "Staged: 2 transactions" in result.output


def test_import_unknown_format(cli_runner, temp_db, checking_account, fixtures_dir):
    result = _invoke(
        cli_runner,
        temp_db,
        "import",
        str(fixtures_dir / "unknown_format.csv"),
        "--account",
        "Everyday Checking",
    )

    assert result.exit_code == 1
    assert "Error: Unsupported CSV format" in result.output


def test_import_unknown_account(cli_runner, temp_db, fixtures_dir):
    result = _import_amex(cli_runner, temp_db, fixtures_dir, account="Nope")

    assert result.exit_code == 1
    assert "Account 'Nope' not found" in result.output


def test_import_into_other_users_account(cli_runner, temp_db, credit_account, fixtures_dir):
    result = _invoke(
        cli_runner,
        temp_db,
        "import",
        str(fixtures_dir / "amex_credit.csv"),
        "--account",
        str(credit_account.id),
        user=OTHER_USER,
    )

    assert result.exit_code == 1
    assert "Not authorized" in result.output


def test_import_reports_row_errors(cli_runner, temp_db, checking_account, tmp_path):
    csv_path = tmp_path / "broken.csv"
    csv_path.write_text("Date,Description,Amount\n2024-01-15,Ok,-1.00\n2024-01-16,Bad,abc\n")

    result = _invoke(cli_runner, temp_db, "import", str(csv_path), "--account", "Everyday Checking")

    assert result.exit_code == 0
    assert "Staged: 1 transactions" in result.output
    assert "Errors: 1" in result.output
    assert "Row 3:" in result.output


def test_staged_list(cli_runner, temp_db, credit_account, fixtures_dir):
    empty = _invoke(cli_runner, temp_db, "staged", "list")
    assert "No staged transactions." in empty.output

    _import_amex(cli_runner, temp_db, fixtures_dir)
    result = _invoke(cli_runner, temp_db, "staged", "list")

    assert result.exit_code == 0
    assert "Walmart Supercenter #1234" in result.output
    assert "Amazon Mktplace Pmts" in result.output
    # Most recent first
    assert result.output.index("Amazon") < result.output.index("Walmart")


def test_staged_list_is_per_user(cli_runner, temp_db, credit_account, fixtures_dir):
    _import_amex(cli_runner, temp_db, fixtures_dir)

    result = _invoke(cli_runner, temp_db, "staged", "list", user=OTHER_USER)

    assert "No staged transactions." in result.output


def test_staged_edit(cli_runner, temp_db, stage):
    draft = stage(category="Uncategorized")

    result = _invoke(
        cli_runner, temp_db, "staged", "edit", str(draft.id), "--category", "dining", "--vendor", "Cafe"
    )

    assert result.exit_code == 0
    assert "-> Dining" in result.output
    assert temp_db.get_staging_transaction(draft.id).vendor == "Cafe"


def test_staged_commit_all(cli_runner, temp_db, credit_account, fixtures_dir):
    _import_amex(cli_runner, temp_db, fixtures_dir)

    result = _invoke(cli_runner, temp_db, "staged", "commit", "--all")

    assert result.exit_code == 0
    assert "Committed 3 transactions" in result.output
    assert temp_db.list_staging_transactions(USER) == []
    assert temp_db.get_account(credit_account.id).balance == Decimal("77.94")


def test_staged_commit_by_id(cli_runner, temp_db, stage, checking_account):
    keep = stage(account_id=checking_account.id, description="Keep")
    commit = stage(account_id=checking_account.id, description="Commit", amount="10.00")

    result = _invoke(cli_runner, temp_db, "staged", "commit", str(commit.id))

    assert result.exit_code == 0
    assert "Committed 1 transactions" in result.output
    assert [d.id for d in temp_db.list_staging_transactions(USER)] == [keep.id]
    assert temp_db.get_account(checking_account.id).balance == Decimal("990.00")


def test_staged_commit_unknown_id(cli_runner, temp_db, stage):
    draft = stage()

    result = _invoke(cli_runner, temp_db, "staged", "commit", str(draft.id), "999")

    assert result.exit_code == 0
    assert "Ignored: Staged transaction not found: 999" in result.output
    assert "Committed 1 transactions" in result.output
    assert "duplicates" not in result.output
    assert len(temp_db.list_transactions()) == 1


def test_staged_commit_requires_ids(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "staged", "commit")

    assert result.exit_code == 1
    assert "Give staged transaction IDs or --all" in result.output


def test_staged_commit_leaves_duplicates(cli_runner, temp_db, credit_account, fixtures_dir):
    _import_amex(cli_runner, temp_db, fixtures_dir)
    _invoke(cli_runner, temp_db, "staged", "commit", "--all")
    # Stage the same rows again without the import-time check
    for draft in temp_db.list_transactions(user_id=USER):
        temp_db.create_staging_transaction(
            raw_data="raw",
            amount=draft.amount,
            type=draft.type.value,
            category=draft.category,
            description=draft.description,
            date=draft.date,
            user_id=USER,
            account_id=credit_account.id,
            source="csv",
        )

    result = _invoke(cli_runner, temp_db, "staged", "commit", "--all")

    assert result.exit_code == 0
    assert "Committed 0 transactions" in result.output
    assert "Left 3 duplicates in staging" in result.output
    assert len(temp_db.list_staging_transactions(USER)) == 3


def test_staged_discard(cli_runner, temp_db, stage):
    first = stage(description="First")
    stage(description="Second")

    result = _invoke(cli_runner, temp_db, "staged", "discard", str(first.id))
    assert "Discarded 1 staged transactions" in result.output

    result = _invoke(cli_runner, temp_db, "staged", "discard", "--all")
    assert "Discarded 1 staged transactions" in result.output
    assert temp_db.list_staging_transactions(USER) == []


def test_reimport_skips_committed_rows(cli_runner, temp_db, credit_account, fixtures_dir):
    _import_amex(cli_runner, temp_db, fixtures_dir)
    _invoke(cli_runner, temp_db, "staged", "commit", "--all")

    result = _import_amex(cli_runner, temp_db, fixtures_dir)

    assert result.exit_code == 0
    assert "Staged: 0 transactions" in result.output
    assert "Skipped: 3 duplicates" in result.output
