"""Tests for the SQLite credit ledger

Run with pytest from project root:
    pytest tests/test_credit_ledger.py -v
"""

import threading

import pytest

from exceptions import InsufficientCreditsError, UserNotFoundError, ValidationError
from managers.credit_ledger import CreditLedger
from models.config import LedgerConfig


class TestAccounts:
    """Tests for account creation and lookup"""

    def test_create_user_grants_initial_credits(self, ledger):
        """Test a new account starts with the initial grant"""
        user = ledger.create_user("alice", "alice@example.com")
        assert user["credits"] == 10
        assert ledger.get_user(user["id"])["username"] == "alice"

    def test_custom_initial_credits(self, tmp_path):
        """Test the initial grant is configurable"""
        ledger = CreditLedger(LedgerConfig(database_path=tmp_path / "users.db", initial_credits=3))
        try:
            user = ledger.create_user("bob", "bob@example.com")
            assert ledger.get_balance(user["id"]) == 3
        finally:
            ledger.close()

    @pytest.mark.parametrize("username,email,message", [
        ("alice", "other@example.com", "Username already exists"),
        ("other", "alice@example.com", "Email already exists"),
    ])
    def test_duplicate_accounts_rejected(self, ledger, username, email, message):
        """Test usernames and emails are unique"""
        ledger.create_user("alice", "alice@example.com")
        with pytest.raises(ValidationError, match=message):
            ledger.create_user(username, email)

    def test_blank_fields_rejected(self, ledger):
        """Test username and email are required"""
        with pytest.raises(ValidationError):
            ledger.create_user("  ", "x@example.com")

    def test_unknown_user(self, ledger):
        """Test unknown ids raise UserNotFoundError"""
        with pytest.raises(UserNotFoundError):
            ledger.get_user(999)

    def test_balance_persists_across_instances(self, tmp_path):
        """Test balances are stored on disk"""
        config = LedgerConfig(database_path=tmp_path / "users.db")
        first = CreditLedger(config)
        user = first.create_user("carol", "carol@example.com")
        first.debit_credits(user["id"], 4)
        first.close()

        second = CreditLedger(config)
        try:
            assert second.get_balance(user["id"]) == 6
        finally:
            second.close()


class TestCredits:
    """Tests for debit, top-up and usage history"""

    def test_debit_returns_new_balance(self, ledger):
        """Test a debit subtracts and reports the remaining balance"""
        user = ledger.create_user("alice", "alice@example.com")
        assert ledger.debit_credits(user["id"], 1) == 9
        assert ledger.has_credits(user["id"], 9)
        assert not ledger.has_credits(user["id"], 10)

    def test_debit_below_zero_rejected(self, ledger):
        """Test an overdraft raises InsufficientCreditsError and leaves the balance"""
        user = ledger.create_user("alice", "alice@example.com")
        ledger.debit_credits(user["id"], 10)
        with pytest.raises(InsufficientCreditsError) as exc_info:
            ledger.debit_credits(user["id"], 1)
        assert exc_info.value.available == 0
        assert exc_info.value.required == 1
        assert ledger.get_balance(user["id"]) == 0

    def test_debit_unknown_user(self, ledger):
        """Test debiting a missing account raises UserNotFoundError"""
        with pytest.raises(UserNotFoundError):
            ledger.debit_credits(42, 1)

    def test_concurrent_debits_never_overdraw(self, ledger):
        """Test racing debits cannot take the balance below zero"""
        user = ledger.create_user("alice", "alice@example.com")
        outcomes = []

        def debit():
            try:
                ledger.debit_credits(user["id"], 1)
                outcomes.append("ok")
            except InsufficientCreditsError:
                outcomes.append("insufficient")

        threads = [threading.Thread(target=debit) for _ in range(25)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 10
        assert outcomes.count("insufficient") == 15
        assert ledger.get_balance(user["id"]) == 0

    def test_add_credits(self, ledger):
        """Test top-ups add to the balance"""
        user = ledger.create_user("alice", "alice@example.com")
        assert ledger.add_credits(user["id"], 5) == 15
        with pytest.raises(UserNotFoundError):
            ledger.add_credits(999, 5)
        with pytest.raises(ValidationError):
            ledger.add_credits(user["id"], -1)

    def test_usage_history_newest_first(self, ledger):
        """Test history is returned newest first and limited"""
        user = ledger.create_user("alice", "alice@example.com")
        for index in range(3):
            ledger.log_usage(user["id"], "AI Enhancement", 1, f"call {index}")

        history = ledger.get_usage_history(user["id"], limit=2)
        assert [entry["description"] for entry in history] == ["call 2", "call 1"]
        assert history[0]["credits_used"] == 1
        assert history[0]["action"] == "AI Enhancement"
