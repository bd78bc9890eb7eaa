"""shopledger: orders, supplier invoices, payments and fees for a small shop."""

__version__ = "0.1.0"


def __getattr__(name):
    # The CLI pulls in the database and every domain service; load it on first use
    if name == "main":
        from shopledger.cli.main import main

        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
