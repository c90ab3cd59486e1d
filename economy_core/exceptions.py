"""
Economy Exceptions

Error types raised by the ledger and by account balance queries.
"""

from typing import Optional


class EconomyError(Exception):
    """Base class for all economy errors"""


class LedgerError(EconomyError):
    """An external ledger call failed (unknown account, unreachable backend)"""


class AccountError(EconomyError):
    """A balance query for a specific account failed"""
    
    def __init__(self, message: str, account_name: Optional[str] = None):
        super().__init__(message)
        self.account_name = account_name
