"""
Test suite for ledger module

Tests the StorageLedger reference implementation on both storage backends.
"""

import pytest
from decimal import Decimal

from economy_core.config import EconomySettings
from economy_core.currency import Currency
from economy_core.exceptions import LedgerError
from economy_core.ledger import EconomyLedger, StorageLedger, create_ledger
from economy_core.storage import InMemoryStorage, SQLiteStorage


@pytest.fixture(params=["memory", "sqlite"])
def ledger(request):
    if request.param == "memory":
        storage = InMemoryStorage()
    else:
        storage = SQLiteStorage(":memory:")
    yield StorageLedger(storage)
    storage.close()


class TestStorageLedger:
    """Test balance operations"""

    def test_is_economy_ledger(self, ledger):
        assert isinstance(ledger, EconomyLedger)

    def test_create_account(self, ledger):
        """Test accounts start at zero and creation is idempotent"""
        assert ledger.create_account("alice", "world")
        assert not ledger.create_account("alice", "world")

        assert ledger.has_account("alice")
        assert ledger.get_balance("alice") == Decimal('0')

    def test_unknown_account(self, ledger):
        """Test reading an unknown account raises LedgerError"""
        with pytest.raises(LedgerError, match="Unknown ledger account"):
            ledger.get_balance("nobody")

    def test_add_and_subtract(self, ledger):
        """Test add and subtract adjust the stored balance"""
        assert ledger.add("alice", Decimal('10.25'))
        assert ledger.add("alice", 5)
        assert ledger.subtract("alice", Decimal('3.25'))

        assert ledger.get_balance("alice") == Decimal('12.00')

    def test_subtract_never_goes_negative(self, ledger):
        """Test subtract refuses to overdraw"""
        ledger.add("alice", 10)

        assert not ledger.subtract("alice", Decimal('10.01'))
        assert ledger.get_balance("alice") == Decimal('10')

        assert ledger.subtract("alice", 10)
        assert ledger.get_balance("alice") == Decimal('0')

    def test_subtract_unknown_account(self, ledger):
        """Test subtract does not create accounts"""
        assert not ledger.subtract("nobody", 1)
        assert not ledger.has_account("nobody")

    def test_negative_amounts_rejected(self, ledger):
        ledger.add("alice", 10)

        assert not ledger.add("alice", -1)
        assert not ledger.subtract("alice", -1)
        assert not ledger.set_balance("alice", -1)
        assert ledger.get_balance("alice") == Decimal('10')

    def test_set_balance(self, ledger):
        assert ledger.set_balance("alice", Decimal('99.99'))
        assert ledger.get_balance("alice") == Decimal('99.99')

        assert ledger.set_balance("alice", 0)
        assert ledger.get_balance("alice") == Decimal('0')

    def test_is_exact(self, ledger):
        """Test exactness against the currency precision"""
        assert ledger.is_exact(Decimal('10'))
        assert ledger.is_exact(Decimal('10.5'))
        assert ledger.is_exact(Decimal('10.25'))
        assert not ledger.is_exact(Decimal('10.005'))

        jpy = StorageLedger(InMemoryStorage(), currency=Currency.JPY)
        assert jpy.is_exact(Decimal('1500'))
        assert not jpy.is_exact(Decimal('0.5'))

    def test_inexact_amounts_refused(self, ledger):
        """Test writes finer than the currency precision are refused, not rounded"""
        ledger.add("alice", 10)

        assert not ledger.add("alice", Decimal('0.004'))
        assert not ledger.subtract("alice", Decimal('0.005'))
        assert not ledger.set_balance("alice", Decimal('99.999'))
        assert ledger.get_balance("alice") == Decimal('10')

        # Refused writes do not create entries either
        assert not ledger.add("bob", Decimal('1.001'))
        assert not ledger.has_account("bob")

    def test_no_auto_create(self):
        """Test add and set_balance refuse unknown names when auto_create is off"""
        ledger = StorageLedger(InMemoryStorage(), auto_create=False)

        assert not ledger.add("alice", 5)
        assert not ledger.set_balance("alice", 5)
        assert not ledger.has_account("alice")

        ledger.create_account("alice")
        assert ledger.add("alice", 5)

    def test_remove_account(self, ledger):
        ledger.add("alice", 5)
        ledger.remove_account("alice")

        assert not ledger.has_account("alice")
        with pytest.raises(LedgerError):
            ledger.get_balance("alice")

        # Removing twice is harmless
        ledger.remove_account("alice")

    def test_list_accounts(self, ledger):
        ledger.create_account("alice")
        ledger.create_account("bob")

        assert sorted(ledger.list_accounts()) == ["alice", "bob"]

    def test_world_is_recorded(self, ledger):
        ledger.create_account("alice", "nether")
        record = ledger.storage.load(ledger.table_name, "alice")

        assert record["world"] == "nether"
        assert record["balance"] == "0.00"

    def test_formatted_balance(self):
        usd = StorageLedger(InMemoryStorage())
        jpy = StorageLedger(InMemoryStorage(), currency=Currency.JPY)

        assert usd.get_formatted_balance(Decimal('1500')) == "USD 1,500.00"
        assert jpy.get_formatted_balance(Decimal('1500.4')) == "JPY 1,500"

    def test_closed_storage_raises_ledger_error(self):
        """Test an unreachable backend surfaces as LedgerError"""
        storage = SQLiteStorage(":memory:")
        ledger = StorageLedger(storage)
        ledger.add("alice", 5)
        storage.close()

        with pytest.raises(LedgerError):
            ledger.get_balance("alice")
        with pytest.raises(LedgerError):
            ledger.add("alice", 5)
        with pytest.raises(LedgerError):
            ledger.has_account("alice")


class TestCreateLedger:
    """Test building a ledger from settings"""

    def test_in_memory_default(self):
        ledger = create_ledger(EconomySettings(database_path=":memory:", currency_code="eur"))

        assert isinstance(ledger.storage, InMemoryStorage)
        assert ledger.currency == Currency.EUR

    def test_sqlite_file(self, tmp_path):
        db_path = tmp_path / "economy.db"
        ledger = create_ledger(EconomySettings(database_path=str(db_path)))
        ledger.add("alice", 7)
        ledger.storage.close()

        reopened = create_ledger(EconomySettings(database_path=str(db_path)))
        assert reopened.get_balance("alice") == Decimal('7')
        reopened.storage.close()

    def test_unknown_currency(self):
        with pytest.raises(ValueError, match="Unsupported currency code"):
            create_ledger(EconomySettings(currency_code="XYZ"))
