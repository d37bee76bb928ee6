"""Domain layer for ledgerflow application."""

__all__ = [
    "AccountService",
    "AuditService",
    "CategorizationService",
    "CSVImportService",
    "DialectService",
    "DuplicateDetector",
    "LedgerService",
    "StagingService",
]

_SERVICES = {
    "AccountService": "ledgerflow.domain.account",
    "AuditService": "ledgerflow.domain.audit",
    "CategorizationService": "ledgerflow.domain.categorization",
    "CSVImportService": "ledgerflow.domain.csv_import",
    "DialectService": "ledgerflow.domain.dialects",
    "DuplicateDetector": "ledgerflow.domain.duplicates",
    "LedgerService": "ledgerflow.domain.ledger",
    "StagingService": "ledgerflow.domain.staging",
}


# Services import the database layer, which imports entities from here,
# so they are resolved lazily
def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
