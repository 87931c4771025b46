"""Credit ledger backed by SQLite: balances and usage history per user"""

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from exceptions import InsufficientCreditsError, UserNotFoundError, ValidationError
from models.config import LedgerConfig

logger = logging.getLogger("SEO_Server")


class CreditLedger:
    """Owns the users and usage_log tables.

    Debits are a single conditional UPDATE, so two concurrent debits can never
    drive a balance below zero.
    """

    def __init__(self, config: Optional[LedgerConfig] = None):
        self.config = config or LedgerConfig()
        self._db_path = Path(self.config.database_path)
        if str(self._db_path) != ":memory:":
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.Lock()
        self._initialize_schema()
        logger.info(f"Credit ledger ready at {self._db_path}")

    def close(self):
        self._conn.close()

    def _initialize_schema(self):
        self._conn.executescript(
            f"""
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT UNIQUE NOT NULL,
                email TEXT UNIQUE NOT NULL,
                credits INTEGER NOT NULL DEFAULT {int(self.config.initial_credits)} CHECK (credits >= 0),
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS usage_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL REFERENCES users(id),
                action TEXT NOT NULL,
                credits_used INTEGER NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            );

            CREATE INDEX IF NOT EXISTS idx_usage_log_user_created
                ON usage_log(user_id, created_at);
            """
        )
        self._conn.commit()

    def create_user(self, username: str, email: str) -> Dict[str, Any]:
        """Create an account with the initial credit grant.

        Raises:
            ValidationError: If the username or email is empty or already taken
        """
        username = (username or "").strip()
        email = (email or "").strip()
        if not username or not email:
            raise ValidationError("Username and email are required")

        with self._lock:
            try:
                cursor = self._conn.execute(
                    "INSERT INTO users (username, email, credits) VALUES (?, ?, ?)",
                    (username, email, self.config.initial_credits),
                )
                self._conn.commit()
            except sqlite3.IntegrityError as e:
                self._conn.rollback()
                if "username" in str(e):
                    raise ValidationError("Username already exists") from e
                if "email" in str(e):
                    raise ValidationError("Email already exists") from e
                raise

        logger.info(f"Created user {username} (id {cursor.lastrowid}) with {self.config.initial_credits} credits")
        return {
            "id": cursor.lastrowid,
            "username": username,
            "email": email,
            "credits": self.config.initial_credits,
        }

    def get_user(self, user_id: int) -> Dict[str, Any]:
        """Raises UserNotFoundError for unknown ids"""
        with self._lock:
            row = self._conn.execute(
                "SELECT id, username, email, credits, created_at FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        if row is None:
            raise UserNotFoundError(user_id)
        return dict(row)

    def get_balance(self, user_id: int) -> int:
        return self.get_user(user_id)["credits"]

    def has_credits(self, user_id: int, amount: int) -> bool:
        return self.get_balance(user_id) >= amount

    def debit_credits(self, user_id: int, amount: int) -> int:
        """Atomically subtract amount and return the new balance.

        Raises:
            UserNotFoundError: If the user does not exist
            InsufficientCreditsError: If the balance is below amount
        """
        with self._lock:
            cursor = self._conn.execute(
                "UPDATE users SET credits = credits - ?, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = ? AND credits >= ?",
                (amount, user_id, amount),
            )
            self._conn.commit()
            changed = cursor.rowcount
        if changed == 0:
            available = self.get_balance(user_id)
            raise InsufficientCreditsError(user_id, amount, available)

        balance = self.get_balance(user_id)
        logger.info(f"Debited {amount} credit(s) from user {user_id}, balance now {balance}")
        return balance

    def add_credits(self, user_id: int, amount: int) -> int:
        """Add amount to the balance and return the new balance"""
        if amount < 0:
            raise ValidationError("Credit amount must not be negative")
        with self._lock:
            cursor = self._conn.execute(
                "UPDATE users SET credits = credits + ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (amount, user_id),
            )
            self._conn.commit()
            changed = cursor.rowcount
        if changed == 0:
            raise UserNotFoundError(user_id)

        balance = self.get_balance(user_id)
        logger.info(f"Added {amount} credit(s) to user {user_id}, balance now {balance}")
        return balance

    def log_usage(self, user_id: int, action: str, credits_used: int, description: str = "") -> int:
        with self._lock:
            cursor = self._conn.execute(
                "INSERT INTO usage_log (user_id, action, credits_used, description) VALUES (?, ?, ?, ?)",
                (user_id, action, credits_used, description),
            )
            self._conn.commit()
        return cursor.lastrowid

    def get_usage_history(self, user_id: int, limit: int = 10) -> List[Dict[str, Any]]:
        """Most recent entries first"""
        with self._lock:
            rows = self._conn.execute(
                "SELECT action, credits_used, description, created_at FROM usage_log "
                "WHERE user_id = ? ORDER BY created_at DESC, id DESC LIMIT ?",
                (user_id, limit),
            ).fetchall()
        return [dict(row) for row in rows]
