"""
Economy Ledger Module

The external balance store that accounts delegate to. Every call is keyed by
account name; the world is passed through so backends that partition
balances by world can route the call.

StorageLedger is the reference implementation over a StorageInterface. It
only ever holds non-negative balances, which is why bank accounts keep their
debt in a separate entry.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

from .currency import Currency, ZERO, to_decimal, quantize, format_amount
from .exceptions import LedgerError
from .logging_config import get_logger
from .config import EconomySettings, get_settings
from .storage import StorageInterface, InMemoryStorage, SQLiteStorage


class EconomyLedger(ABC):
    """Abstract interface for the external balance ledger"""

    @abstractmethod
    def get_balance(self, name: str, world: Optional[str] = None) -> Decimal:
        """
        Get the balance of an account

        Raises:
            LedgerError: If the account is unknown or the ledger is unreachable
        """
        pass

    @abstractmethod
    def set_balance(self, name: str, amount: Decimal, world: Optional[str] = None) -> bool:
        """Set the balance of an account"""
        pass

    @abstractmethod
    def add(self, name: str, amount: Decimal, world: Optional[str] = None) -> bool:
        """Add to the balance of an account"""
        pass

    @abstractmethod
    def subtract(self, name: str, amount: Decimal, world: Optional[str] = None) -> bool:
        """Subtract from the balance of an account"""
        pass

    @abstractmethod
    def get_formatted_balance(self, amount: Decimal) -> str:
        """Format an amount for display"""
        pass

    @abstractmethod
    def remove_account(self, name: str) -> None:
        """Delete the ledger entry for an account"""
        pass

    @abstractmethod
    def has_account(self, name: str, world: Optional[str] = None) -> bool:
        """Check if the ledger has an entry for an account"""
        pass

    @abstractmethod
    def create_account(self, name: str, world: Optional[str] = None) -> bool:
        """Create an empty ledger entry; no-op if it already exists"""
        pass

    def is_exact(self, amount: Decimal) -> bool:
        """Whether the ledger can store an amount without rounding it"""
        return True


class StorageLedger(EconomyLedger):
    """
    Ledger backed by a StorageInterface

    Balances are stored as Decimal strings at the currency precision; amounts
    finer than that precision are refused rather than rounded.
    Storage failures surface as LedgerError.
    """

    def __init__(
        self,
        storage: StorageInterface,
        currency: Currency = Currency.USD,
        auto_create: bool = True
    ):
        self.storage = storage
        self.currency = currency
        self.auto_create = auto_create
        self.table_name = "balances"
        self.logger = get_logger("economy.ledger")

    def get_balance(self, name: str, world: Optional[str] = None) -> Decimal:
        record = self._load(name)
        if record is None:
            raise LedgerError(f"Unknown ledger account: {name}")
        return Decimal(record['balance'])

    def set_balance(self, name: str, amount: Decimal, world: Optional[str] = None) -> bool:
        amount = to_decimal(amount)
        if not self.is_exact(amount):
            self.logger.warning(f"Refusing {amount} for {name}: finer than {self.currency.code} precision")
            return False
        if amount < ZERO:
            self.logger.warning(f"Refusing negative balance {amount} for {name}")
            return False

        with self.storage.atomic():
            record = self._load(name)
            if record is None:
                if not self.auto_create:
                    return False
                record = self._new_record(name, world)
            self._store(record, amount)
        return True

    def add(self, name: str, amount: Decimal, world: Optional[str] = None) -> bool:
        amount = to_decimal(amount)
        if not self.is_exact(amount):
            self.logger.warning(f"Refusing {amount} for {name}: finer than {self.currency.code} precision")
            return False
        if amount < ZERO:
            return False

        with self.storage.atomic():
            record = self._load(name)
            if record is None:
                if not self.auto_create:
                    return False
                record = self._new_record(name, world)
            self._store(record, Decimal(record['balance']) + amount)
        return True

    def subtract(self, name: str, amount: Decimal, world: Optional[str] = None) -> bool:
        amount = to_decimal(amount)
        if not self.is_exact(amount):
            self.logger.warning(f"Refusing {amount} for {name}: finer than {self.currency.code} precision")
            return False
        if amount < ZERO:
            return False

        with self.storage.atomic():
            record = self._load(name)
            if record is None:
                return False
            new_balance = Decimal(record['balance']) - amount
            if new_balance < ZERO:
                self.logger.debug(f"Insufficient funds in {name} to subtract {amount}")
                return False
            self._store(record, new_balance)
        return True

    def is_exact(self, amount: Decimal) -> bool:
        return quantize(amount, self.currency) == amount

    def get_formatted_balance(self, amount: Decimal) -> str:
        return format_amount(amount, self.currency)

    def remove_account(self, name: str) -> None:
        try:
            self.storage.delete(self.table_name, name)
        except Exception as e:
            raise LedgerError(f"Failed to remove ledger account {name}: {e}") from e

    def has_account(self, name: str, world: Optional[str] = None) -> bool:
        try:
            return self.storage.exists(self.table_name, name)
        except Exception as e:
            raise LedgerError(f"Ledger unreachable: {e}") from e

    def create_account(self, name: str, world: Optional[str] = None) -> bool:
        with self.storage.atomic():
            if self._load(name) is not None:
                return False
            self._store(self._new_record(name, world), ZERO)
        return True

    def list_accounts(self) -> List[str]:
        """Names of all ledger entries"""
        try:
            return [record['name'] for record in self.storage.load_all(self.table_name)]
        except Exception as e:
            raise LedgerError(f"Ledger unreachable: {e}") from e

    def _load(self, name: str) -> Optional[Dict[str, Any]]:
        try:
            return self.storage.load(self.table_name, name)
        except Exception as e:
            raise LedgerError(f"Ledger unreachable: {e}") from e

    def _new_record(self, name: str, world: Optional[str]) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        return {
            "name": name,
            "world": world,
            "balance": str(ZERO),
            "created_at": now,
            "updated_at": now
        }

    def _store(self, record: Dict[str, Any], balance: Decimal) -> None:
        record['balance'] = str(quantize(balance, self.currency))
        record['updated_at'] = datetime.now(timezone.utc).isoformat()
        try:
            self.storage.save(self.table_name, record['name'], record)
        except Exception as e:
            raise LedgerError(f"Failed to save ledger account {record['name']}: {e}") from e


def create_ledger(settings: Optional[EconomySettings] = None) -> StorageLedger:
    """
    Build a StorageLedger from settings

    ":memory:" selects InMemoryStorage, any other database_path a SQLite file.
    """
    settings = settings or get_settings()
    if settings.database_path == ":memory:":
        storage = InMemoryStorage()
    else:
        storage = SQLiteStorage(settings.database_path)

    try:
        currency = Currency[settings.currency_code.upper()]
    except KeyError:
        raise ValueError(f"Unsupported currency code: {settings.currency_code}")

    return StorageLedger(storage, currency=currency)
