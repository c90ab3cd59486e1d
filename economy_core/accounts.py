"""
Account Module

Economy accounts whose balances live in an external ledger. An account only
knows its name and world; every balance read or write goes through the
ledger.

BankAccount adds a cap on positive holdings and a debt system. Ledgers can
only hold non-negative balances, so a bank account that is overdrawn keeps
the size of its debt in a second ledger entry (its DebtAccount) and zeroes
its own entry. An account is either in credit or in debt, never both.
"""

from abc import ABC
from decimal import Decimal
from typing import Optional

from .config import get_settings
from .currency import ZERO, to_decimal
from .exceptions import AccountError, LedgerError
from .ledger import EconomyLedger
from .logging_config import get_logger, log_action

logger = get_logger("economy.accounts")


class Account(ABC):
    """
    Base economy account

    deposit() and withdraw() validate the amount and delegate to the
    _add_money() / _subtract_money() hooks, which subclasses override to
    change how a balance change is applied to the ledger.
    """

    def __init__(self, name: str, world: Optional[str], ledger: EconomyLedger):
        self.name = name
        self.world = world
        self.ledger = ledger

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, world={self.world!r})"

    def deposit(self, amount, reason: Optional[str] = None) -> bool:
        """
        Add money to this account

        Args:
            amount: Positive amount to deposit
            reason: Free-form description of why the money moved

        Returns:
            True if the ledger accepted the change
        """
        amount = self._validate_amount(amount, "deposit")
        if amount is None:
            return False

        success = self._add_money(amount)
        self._log_result("deposit", amount, success, reason)
        return success

    def withdraw(self, amount, reason: Optional[str] = None) -> bool:
        """
        Take money from this account

        Args:
            amount: Positive amount to withdraw
            reason: Free-form description of why the money moved

        Returns:
            True if the ledger accepted the change
        """
        amount = self._validate_amount(amount, "withdraw")
        if amount is None:
            return False

        success = self._subtract_money(amount)
        self._log_result("withdraw", amount, success, reason)
        return success

    def set_balance(self, amount, reason: Optional[str] = None) -> bool:
        """Overwrite the ledger balance of this account"""
        try:
            amount = to_decimal(amount)
            success = self.ledger.set_balance(self.name, amount, self.world)
        except (ValueError, LedgerError) as e:
            logger.error(f"Failed to set balance of {self.name}: {e}", exc_info=True)
            return False
        self._log_result("set_balance", amount, success, reason)
        return success

    def pay_to(self, amount, collaborator: 'Account', reason: Optional[str] = None) -> bool:
        """
        Move money from this account into another one

        If the collaborator refuses the deposit the withdrawn amount is
        deposited back into this account.
        """
        if not self.withdraw(amount, reason):
            return False

        if not collaborator.deposit(amount, reason):
            if not self.deposit(amount, reason):
                logger.error(f"Failed to refund {amount} to {self.name} after a rejected payment to {collaborator.name}")
            return False

        return True

    def can_pay_from_holdings(self, amount) -> bool:
        """
        Check if the current holdings cover an amount

        Raises:
            AccountError: If the balance cannot be read
        """
        return self.get_holding_balance() >= to_decimal(amount)

    def get_holding_balance(self) -> Decimal:
        """
        Get the current balance

        Raises:
            AccountError: If the ledger is unreachable or the account is unknown
        """
        return self._ledger_balance(self.name)

    def get_holding_formatted_balance(self) -> str:
        """Get the current balance formatted for display, or "Error" if it cannot be read"""
        try:
            return self.ledger.get_formatted_balance(self.get_holding_balance())
        except (AccountError, LedgerError):
            return "Error"

    def remove_account(self) -> None:
        """Delete this account's ledger entry; a ledger failure is logged, not raised"""
        self._remove_entry(self.name)

    def _add_money(self, amount: Decimal) -> bool:
        try:
            return self.ledger.add(self.name, amount, self.world)
        except LedgerError as e:
            logger.error(f"Ledger error depositing into {self.name}: {e}", exc_info=True)
            return False

    def _subtract_money(self, amount: Decimal) -> bool:
        try:
            return self.ledger.subtract(self.name, amount, self.world)
        except LedgerError as e:
            logger.error(f"Ledger error withdrawing from {self.name}: {e}", exc_info=True)
            return False

    def _remove_entry(self, name: str) -> bool:
        try:
            self.ledger.remove_account(name)
        except LedgerError as e:
            logger.error(f"Failed to remove ledger entry {name}: {e}", exc_info=True)
            return False
        log_action(logger, "info", "Ledger entry removed", account=name,
                   world=self.world, action="remove_account")
        return True

    def _ledger_balance(self, name: str) -> Decimal:
        try:
            return self.ledger.get_balance(name, self.world)
        except LedgerError as e:
            raise AccountError(f"Economy error getting holdings for {name}", account_name=name) from e

    def _validate_amount(self, amount, action: str) -> Optional[Decimal]:
        """Return the amount as a Decimal, or None if it is not a positive finite number"""
        try:
            amount = to_decimal(amount)
        except ValueError:
            logger.warning(f"Rejected {action} on {self.name}: {amount!r} is not a finite number")
            return None

        if amount <= ZERO:
            logger.warning(f"Rejected {action} on {self.name}: amount must be positive, got {amount}")
            return None

        if not self.ledger.is_exact(amount):
            logger.warning(f"Rejected {action} on {self.name}: {amount} is finer than the ledger precision")
            return None

        return amount

    def _log_result(self, action: str, amount: Decimal, success: bool, reason: Optional[str]) -> None:
        log_action(
            logger, "info" if success else "warning",
            f"{action.capitalize()} {'succeeded' if success else 'failed'}",
            account=self.name,
            world=self.world,
            action=action,
            amount=amount,
            extra={"reason": reason} if reason else None
        )


class EconomyAccount(Account):
    """Plain ledger account with no caps and no debt"""


class DebtAccount(EconomyAccount):
    """
    Ledger entry holding how much a bank account is in the red

    The balance is the debt magnitude, always >= 0. It is only ever
    addressed by its owning BankAccount.
    """

    def __init__(self, owner: Account, suffix: Optional[str] = None):
        if suffix is None:
            suffix = get_settings().debt_account_suffix
        super().__init__(owner.name + suffix, owner.world, owner.ledger)
        self.owner = owner


class BankAccount(Account):
    """
    Account with a cap on its balance and a capped debt system

    A balance_cap or debt_cap of 0 means uncapped.
    """

    def __init__(
        self,
        name: str,
        world: Optional[str],
        ledger: EconomyLedger,
        balance_cap=ZERO,
        debt_cap=ZERO,
        debt_suffix: Optional[str] = None
    ):
        super().__init__(name, world, ledger)
        self._balance_cap = self._validate_cap(balance_cap, "Balance cap")
        self._debt_cap = self._validate_cap(debt_cap, "Debt cap")
        self._debt_account = DebtAccount(self, debt_suffix)

    @property
    def debt_account(self) -> DebtAccount:
        return self._debt_account

    @property
    def balance_cap(self) -> Decimal:
        """The max amount of money allowed in this account"""
        return self._balance_cap

    @balance_cap.setter
    def balance_cap(self, value) -> None:
        self._balance_cap = self._validate_cap(value, "Balance cap")

    @property
    def debt_cap(self) -> Decimal:
        """The max amount of debt this account can have"""
        return self._debt_cap

    @debt_cap.setter
    def debt_cap(self, value) -> None:
        self._debt_cap = self._validate_cap(value, "Debt cap")

    def set_balance_cap(self, balance_cap) -> None:
        self.balance_cap = balance_cap

    def get_balance_cap(self) -> Decimal:
        return self.balance_cap

    def set_debt_cap(self, debt_cap) -> None:
        self.debt_cap = debt_cap

    def get_debt_cap(self) -> Decimal:
        return self.debt_cap

    def is_bankrupt(self) -> bool:
        """
        Whether the account is in debt

        Raises:
            AccountError: If the debt balance cannot be read
        """
        return self.get_debt_balance() > ZERO

    def get_debt_balance(self) -> Decimal:
        """
        Get the debt magnitude (0 when solvent)

        A missing debt entry means the account has never been in debt.

        Raises:
            AccountError: If the ledger is unreachable
        """
        try:
            if not self.ledger.has_account(self._debt_account.name, self.world):
                return ZERO
        except LedgerError as e:
            raise AccountError(
                f"Economy error getting debt for {self.name}", account_name=self.name
            ) from e
        return self._ledger_balance(self._debt_account.name)

    def get_holding_balance(self) -> Decimal:
        """
        Get the balance, negative when the account is in debt

        Raises:
            AccountError: If the ledger is unreachable or the account is unknown
        """
        debt = self.get_debt_balance()
        if debt > ZERO:
            return -debt
        return self._ledger_balance(self.name)

    def get_holding_formatted_balance(self) -> str:
        try:
            debt = self.get_debt_balance()
            if debt > ZERO:
                return "-" + self.ledger.get_formatted_balance(debt)
            return self.ledger.get_formatted_balance(self._ledger_balance(self.name))
        except (AccountError, LedgerError):
            return "Error"

    def set_balance(self, amount, reason: Optional[str] = None) -> bool:
        """
        Overwrite the balance; a negative amount puts the account in debt

        Caps apply: the new balance may not exceed balance_cap and the new
        debt may not exceed debt_cap.
        """
        try:
            amount = to_decimal(amount)
        except ValueError:
            logger.warning(f"Rejected set_balance on {self.name}: {amount!r} is not a number")
            return False

        if not self.ledger.is_exact(amount):
            logger.warning(f"Rejected set_balance on {self.name}: {amount} is finer than the ledger precision")
            return False

        if amount >= ZERO and self._exceeds(amount, self._balance_cap):
            return False
        if amount < ZERO and self._exceeds(-amount, self._debt_cap):
            return False

        try:
            if amount >= ZERO:
                success = self.ledger.set_balance(self._debt_account.name, ZERO, self.world)
                success = success and self.ledger.set_balance(self.name, amount, self.world)
            else:
                success = self.ledger.set_balance(self.name, ZERO, self.world)
                success = success and self.ledger.set_balance(self._debt_account.name, -amount, self.world)
        except LedgerError as e:
            logger.error(f"Failed to set balance of {self.name}: {e}", exc_info=True)
            return False

        self._log_result("set_balance", amount, success, reason)
        return success

    def remove_account(self) -> None:
        """
        Delete the debt entry and then the main entry

        The main entry is removed even if removing the debt entry fails.
        """
        self._remove_entry(self._debt_account.name)
        self._remove_entry(self.name)

    def _subtract_money(self, amount: Decimal) -> bool:
        try:
            debt = self.get_debt_balance()

            if debt > ZERO:
                if self._exceeds(debt + amount, self._debt_cap):
                    logger.info(f"Withdrawal of {amount} from {self.name} rejected: debt cap {self._debt_cap} reached")
                    return False
                return self._add_debt(amount)

            holdings = self._ledger_balance(self.name)
            if holdings < amount:
                overflow = amount - holdings
                if self._exceeds(overflow, self._debt_cap):
                    logger.info(f"Withdrawal of {amount} from {self.name} rejected: debt of {overflow} exceeds cap {self._debt_cap}")
                    return False

                # Empty out the account and carry the rest as debt
                success = self.ledger.set_balance(self.name, ZERO, self.world)
                if not success:
                    return False
                return self._add_debt(overflow)

            return self.ledger.subtract(self.name, amount, self.world)
        except (AccountError, LedgerError) as e:
            logger.error(f"Economy error withdrawing {amount} from {self.name}: {e}", exc_info=True)
            return False

    def _add_money(self, amount: Decimal) -> bool:
        try:
            debt = self.get_debt_balance()
            if debt > ZERO:
                holdings = -debt
            elif not self.ledger.has_account(self.name, self.world):
                # No main entry yet, the ledger creates it on add
                holdings = ZERO
            else:
                holdings = self._ledger_balance(self.name)

            if self._exceeds(holdings + amount, self._balance_cap):
                logger.info(f"Deposit of {amount} into {self.name} rejected: balance cap {self._balance_cap} reached")
                return False

            if debt > ZERO:
                return self._remove_debt(amount, debt)

            return self.ledger.add(self.name, amount, self.world)
        except (AccountError, LedgerError) as e:
            logger.error(f"Economy error depositing {amount} into {self.name}: {e}", exc_info=True)
            return False

    def _add_debt(self, amount: Decimal) -> bool:
        return self._debt_account.deposit(amount)

    def _remove_debt(self, amount: Decimal, debt: Decimal) -> bool:
        if debt < amount:
            net_money = amount - debt

            # Clear the debt, the rest is credit
            if not self.ledger.set_balance(self._debt_account.name, ZERO, self.world):
                return False
            return self.ledger.add(self.name, net_money, self.world)

        return self._debt_account.withdraw(amount)

    @staticmethod
    def _exceeds(value: Decimal, cap: Decimal) -> bool:
        return cap != ZERO and value > cap

    def _validate_cap(self, value, label: str) -> Decimal:
        try:
            cap = to_decimal(value)
        except ValueError:
            raise ValueError(f"{label} must be a non-negative number, got {value!r}")
        if cap < ZERO:
            raise ValueError(f"{label} must be a non-negative number, got {value}")
        if not self.ledger.is_exact(cap):
            raise ValueError(f"{label} {value} is finer than the ledger precision")
        return cap
