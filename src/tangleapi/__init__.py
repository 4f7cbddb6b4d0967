"""tangleapi — presentation-agnostic service layer for a ledger node."""

__version__ = "0.1.0"
