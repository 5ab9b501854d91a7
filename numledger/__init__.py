"""Double-entry accounting ledger core: postings, volumes, balance contracts, logs and locks."""

__version__ = "0.1.0"