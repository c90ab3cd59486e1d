"""
Economy Core

Capped, debt-aware economy accounts. Balances live in an external ledger;
bank accounts that are overdrawn carry their debt in a shadow account
instead of going negative.
"""

__version__ = "1.0.0"
