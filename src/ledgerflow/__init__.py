"""Bank statement import, review and ledger."""

__version__ = "0.1.0"


# Import main lazily so importing the package does not pull in click
def __getattr__(name):
    if name == "main":
        from ledgerflow.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
