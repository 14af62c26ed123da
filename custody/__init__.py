"""Value custody service: account ledger behind a session-token login."""

__version__ = "0.1.0"
