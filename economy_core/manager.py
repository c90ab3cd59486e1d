"""
Account Manager Module

Creates, looks up and removes economy accounts. Caps for new bank accounts
default to the configured values. Accounts do no locking of their own; the
manager hands out one re-entrant lock per account name for callers that
need to serialize operations on an account.
"""

from decimal import Decimal
from typing import Dict, List, Optional
import threading

from .accounts import Account, BankAccount, EconomyAccount
from .config import EconomySettings, get_settings
from .ledger import EconomyLedger
from .logging_config import get_logger, log_action


class AccountManager:
    """
    Manages account lifecycle on top of an EconomyLedger
    """

    def __init__(self, ledger: EconomyLedger, settings: Optional[EconomySettings] = None):
        self.ledger = ledger
        self.settings = settings or get_settings()
        self.logger = get_logger("economy.manager")
        self._accounts: Dict[str, Account] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._lock = threading.RLock()

    def create_bank_account(
        self,
        name: str,
        world: Optional[str] = None,
        balance_cap: Optional[Decimal] = None,
        debt_cap: Optional[Decimal] = None
    ) -> BankAccount:
        """
        Create a capped bank account and its ledger entry

        Args:
            name: Unique account name
            world: World the account belongs to
            balance_cap: Max balance, settings default if omitted (0 = uncapped)
            debt_cap: Max debt, settings default if omitted (0 = uncapped)

        Returns:
            Created BankAccount

        Raises:
            ValueError: If an account with this name already exists
        """
        if balance_cap is None:
            balance_cap = self.settings.balance_cap
        if debt_cap is None:
            debt_cap = self.settings.debt_cap

        account = BankAccount(
            name, world, self.ledger,
            balance_cap=balance_cap,
            debt_cap=debt_cap,
            debt_suffix=self.settings.debt_account_suffix
        )
        self._register(account)
        return account

    def create_economy_account(self, name: str, world: Optional[str] = None) -> EconomyAccount:
        """Create a plain uncapped account and its ledger entry"""
        account = EconomyAccount(name, world, self.ledger)
        self._register(account)
        return account

    def get_account(self, name: str) -> Optional[Account]:
        """Get account by name"""
        with self._lock:
            return self._accounts.get(name)

    def list_accounts(self) -> List[Account]:
        """Get all managed accounts"""
        with self._lock:
            return list(self._accounts.values())

    def remove_account(self, name: str) -> bool:
        """
        Remove an account and its ledger entries

        Returns:
            False if no account with this name is managed
        """
        # Account lock first, manager lock only around the dict; never the reverse
        with self.lock(name):
            with self._lock:
                account = self._accounts.get(name)
            if account is None:
                return False

            account.remove_account()

            with self._lock:
                if self._accounts.get(name) is account:
                    del self._accounts[name]

        log_action(self.logger, "info", "Account removed", account=name,
                   world=account.world, action="remove_account")
        return True

    def lock(self, name: str) -> threading.RLock:
        """Get the lock that serializes operations on an account"""
        with self._lock:
            lock = self._locks.get(name)
            if lock is None:
                lock = threading.RLock()
                self._locks[name] = lock
            return lock

    def _register(self, account: Account) -> None:
        with self._lock:
            if account.name in self._accounts:
                raise ValueError(f"Account {account.name} already exists")
            self.ledger.create_account(account.name, account.world)
            self._accounts[account.name] = account

        log_action(
            self.logger, "info", "Account created",
            account=account.name,
            world=account.world,
            action="create_account",
            extra={"type": type(account).__name__}
        )
