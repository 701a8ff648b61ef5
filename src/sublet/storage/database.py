"""
SQLite database for accounts, listings and tips.

Each repository call opens its own connection through :meth:`Database.connect`,
which commits on success, rolls back on any error and always closes.
Storage failures surface as :class:`~sublet.errors.Unavailable`.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from loguru import logger

from ..auth.models import Account
from ..auth.permissions import Role
from ..errors import InvalidInput, Unavailable
from ..listings.models import Listing, ListingFilter, RoomType
from ..tips.models import Tip, TipStatus, from_cents, to_cents
from .repositories import AccountRepository, ListingRepository, TipRepository


SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id TEXT PRIMARY KEY,
    username TEXT UNIQUE NOT NULL,
    email TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'user',
    created_at TEXT NOT NULL,
    last_login_at TEXT
);

CREATE TABLE IF NOT EXISTS listings (
    listing_id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    price REAL NOT NULL CHECK (price >= 0),
    deposit REAL NOT NULL CHECK (deposit >= 0),
    start_date TEXT NOT NULL,
    end_date TEXT NOT NULL,
    location TEXT NOT NULL,
    room_type TEXT NOT NULL,
    furnished INTEGER NOT NULL DEFAULT 0,
    images TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    CHECK (end_date > start_date)
);

CREATE TABLE IF NOT EXISTS tips (
    tip_id TEXT PRIMARY KEY,
    listing_id TEXT NOT NULL,
    from_user_id TEXT NOT NULL,
    to_user_id TEXT NOT NULL,
    amount_cents INTEGER NOT NULL CHECK (amount_cents > 0),
    status TEXT NOT NULL DEFAULT 'pending',
    message TEXT,
    transaction_id TEXT,
    failure_reason TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    CHECK (from_user_id != to_user_id)
);

CREATE INDEX IF NOT EXISTS idx_listings_owner ON listings(owner_id);
CREATE INDEX IF NOT EXISTS idx_listings_created ON listings(created_at);
CREATE INDEX IF NOT EXISTS idx_listings_price ON listings(price);
CREATE INDEX IF NOT EXISTS idx_listings_start ON listings(start_date);
CREATE INDEX IF NOT EXISTS idx_tips_listing ON tips(listing_id, status);
CREATE INDEX IF NOT EXISTS idx_tips_from_user ON tips(from_user_id, status);
CREATE INDEX IF NOT EXISTS idx_tips_created ON tips(created_at);
"""

# Columns a listing patch may touch, mapped to their storage encoders
_LISTING_COLUMNS = {
    "title": lambda v: v,
    "description": lambda v: v,
    "price": float,
    "deposit": float,
    "start_date": lambda v: v.isoformat(),
    "end_date": lambda v: v.isoformat(),
    "location": lambda v: v,
    "room_type": lambda v: RoomType(v).value,
    "furnished": lambda v: 1 if v else 0,
    "images": lambda v: json.dumps(list(v)),
    "updated_at": lambda v: v.isoformat(),
}

_TIP_COLUMNS = ("transaction_id", "failure_reason", "updated_at")


def _fold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


class Database:
    """
    Connection factory for the SQLite file.

    Attributes:
        db_path: Path to the SQLite database file
        timeout: Seconds to wait on a locked database
    """

    def __init__(self, db_path: Path, timeout: float = 5.0):
        """
        Initialize database.

        Args:
            db_path: Path to SQLite database file
            timeout: Lock wait timeout in seconds
        """
        self.db_path = Path(db_path)
        self.timeout = timeout

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """
        Scoped connection.

        Raises:
            Unavailable: If the database cannot be opened or a statement fails
        """
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except sqlite3.Error as e:
            logger.error(f"Failed to open database {self.db_path}: {e}")
            raise Unavailable("Storage is unavailable") from e

        conn.row_factory = sqlite3.Row
        conn.create_function("fold", 1, _fold, deterministic=True)
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise Unavailable("Storage is unavailable") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.connect() as conn:
            conn.executescript(SCHEMA)

        logger.info(f"Database initialized: {self.db_path}")


# ============================================================================
# Accounts
# ============================================================================

def _row_to_account(row: sqlite3.Row) -> Account:
    return Account(
        id=row["account_id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        last_login_at=(
            datetime.fromisoformat(row["last_login_at"]) if row["last_login_at"] else None
        ),
    )


class SQLiteAccountRepository(AccountRepository):
    """Accounts table access."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, account: Account) -> Account:
        with self.db.connect() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO accounts (account_id, username, email, password_hash, role, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        account.id,
                        account.username,
                        account.email,
                        account.password_hash,
                        account.role.value,
                        account.created_at.isoformat(),
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise InvalidInput("Username or email is already registered") from e

        logger.info(f"Account created: {account.username} ({account.id}) with role: {account.role.value}")
        return account

    def get_by_id(self, account_id: str) -> Optional[Account]:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM accounts WHERE account_id = ?", (account_id,)
            ).fetchone()
        return _row_to_account(row) if row else None

    def find_by_identifier(self, identifier: str) -> Optional[Account]:
        key = identifier.strip().lower()
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM accounts WHERE email = ? OR username = ?", (key, key)
            ).fetchone()
        return _row_to_account(row) if row else None

    def touch_login(self, account_id: str, when: datetime) -> None:
        with self.db.connect() as conn:
            conn.execute(
                "UPDATE accounts SET last_login_at = ? WHERE account_id = ?",
                (when.isoformat(), account_id),
            )

    def count(self) -> int:
        with self.db.connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM accounts").fetchone()[0]

    def latest(self, limit: int) -> List[Account]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM accounts ORDER BY created_at DESC, rowid DESC LIMIT ?", (limit,)
            ).fetchall()
        return [_row_to_account(row) for row in rows]


# ============================================================================
# Listings
# ============================================================================

def _row_to_listing(row: sqlite3.Row) -> Listing:
    return Listing(
        id=row["listing_id"],
        owner_id=row["owner_id"],
        title=row["title"],
        description=row["description"],
        price=row["price"],
        deposit=row["deposit"],
        start_date=date.fromisoformat(row["start_date"]),
        end_date=date.fromisoformat(row["end_date"]),
        location=row["location"],
        room_type=RoomType(row["room_type"]),
        furnished=bool(row["furnished"]),
        images=json.loads(row["images"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _filter_clause(listing_filter: Optional[ListingFilter]) -> Tuple[str, List[Any]]:
    """Compile a ListingFilter into a WHERE clause and its parameters."""
    if listing_filter is None:
        return "", []

    conditions: List[str] = []
    params: List[Any] = []

    # Interval overlap: listing starts before the window ends and ends after it starts
    if listing_filter.available_until is not None:
        conditions.append("start_date <= ?")
        params.append(listing_filter.available_until.isoformat())
    if listing_filter.available_from is not None:
        conditions.append("end_date >= ?")
        params.append(listing_filter.available_from.isoformat())

    if listing_filter.min_price is not None:
        conditions.append("price >= ?")
        params.append(listing_filter.min_price)
    if listing_filter.max_price is not None:
        conditions.append("price <= ?")
        params.append(listing_filter.max_price)

    if listing_filter.location:
        conditions.append("instr(fold(location), ?) > 0")
        params.append(listing_filter.location.casefold())

    if not conditions:
        return "", []
    return " WHERE " + " AND ".join(conditions), params


class SQLiteListingRepository(ListingRepository):
    """Listings table access."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, listing: Listing) -> Listing:
        with self.db.connect() as conn:
            conn.execute(
                """
                INSERT INTO listings (
                    listing_id, owner_id, title, description, price, deposit,
                    start_date, end_date, location, room_type, furnished, images,
                    created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    listing.id,
                    listing.owner_id,
                    listing.title,
                    listing.description,
                    listing.price,
                    listing.deposit,
                    listing.start_date.isoformat(),
                    listing.end_date.isoformat(),
                    listing.location,
                    listing.room_type.value,
                    1 if listing.furnished else 0,
                    json.dumps(listing.images),
                    listing.created_at.isoformat(),
                    listing.updated_at.isoformat(),
                ),
            )
        return listing

    def get_by_id(self, listing_id: str) -> Optional[Listing]:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM listings WHERE listing_id = ?", (listing_id,)
            ).fetchone()
        return _row_to_listing(row) if row else None

    def update_by_id(self, listing_id: str, patch: Dict[str, Any]) -> Optional[Listing]:
        unknown = set(patch) - set(_LISTING_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown listing fields: {', '.join(sorted(unknown))}")
        if not patch:
            return self.get_by_id(listing_id)

        assignments = ", ".join(f"{name} = ?" for name in patch)
        params = [_LISTING_COLUMNS[name](value) for name, value in patch.items()]

        with self.db.connect() as conn:
            cursor = conn.execute(
                f"UPDATE listings SET {assignments} WHERE listing_id = ?",
                (*params, listing_id),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT * FROM listings WHERE listing_id = ?", (listing_id,)
            ).fetchone()
        return _row_to_listing(row)

    def delete_by_id(self, listing_id: str) -> bool:
        with self.db.connect() as conn:
            cursor = conn.execute("DELETE FROM listings WHERE listing_id = ?", (listing_id,))
            return cursor.rowcount > 0

    def find(self, listing_filter: ListingFilter, skip: int, limit: int) -> Tuple[List[Listing], int]:
        where, params = _filter_clause(listing_filter)
        with self.db.connect() as conn:
            total = conn.execute(f"SELECT COUNT(*) FROM listings{where}", params).fetchone()[0]
            rows = conn.execute(
                f"SELECT * FROM listings{where} "
                "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                (*params, limit, skip),
            ).fetchall()
        return [_row_to_listing(row) for row in rows], total

    def count(self, listing_filter: Optional[ListingFilter] = None) -> int:
        where, params = _filter_clause(listing_filter)
        with self.db.connect() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM listings{where}", params).fetchone()[0]

    def latest(self, limit: int) -> List[Listing]:
        items, _ = self.find(ListingFilter(), skip=0, limit=limit)
        return items


# ============================================================================
# Tips
# ============================================================================

def _row_to_tip(row: sqlite3.Row) -> Tip:
    return Tip(
        id=row["tip_id"],
        listing_id=row["listing_id"],
        from_user_id=row["from_user_id"],
        to_user_id=row["to_user_id"],
        amount=from_cents(row["amount_cents"]),
        status=TipStatus(row["status"]),
        message=row["message"],
        transaction_id=row["transaction_id"],
        failure_reason=row["failure_reason"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class SQLiteTipRepository(TipRepository):
    """Tips table access."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, tip: Tip) -> Tip:
        with self.db.connect() as conn:
            conn.execute(
                """
                INSERT INTO tips (
                    tip_id, listing_id, from_user_id, to_user_id, amount_cents, status,
                    message, transaction_id, failure_reason, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    tip.id,
                    tip.listing_id,
                    tip.from_user_id,
                    tip.to_user_id,
                    to_cents(tip.amount),
                    tip.status.value,
                    tip.message,
                    tip.transaction_id,
                    tip.failure_reason,
                    tip.created_at.isoformat(),
                    tip.updated_at.isoformat(),
                ),
            )
        return tip

    def get_by_id(self, tip_id: str) -> Optional[Tip]:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM tips WHERE tip_id = ?", (tip_id,)).fetchone()
        return _row_to_tip(row) if row else None

    def transition(
        self,
        tip_id: str,
        from_status: TipStatus,
        to_status: TipStatus,
        fields: Dict[str, Any],
    ) -> bool:
        unknown = set(fields) - set(_TIP_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown tip fields: {', '.join(sorted(unknown))}")

        values = {
            name: value.isoformat() if isinstance(value, datetime) else value
            for name, value in fields.items()
        }
        assignments = ", ".join(["status = ?"] + [f"{name} = ?" for name in values])

        with self.db.connect() as conn:
            cursor = conn.execute(
                f"UPDATE tips SET {assignments} WHERE tip_id = ? AND status = ?",
                (to_status.value, *values.values(), tip_id, from_status.value),
            )
            return cursor.rowcount == 1

    def sum_amount(
        self,
        listing_id: Optional[str] = None,
        from_user_id: Optional[str] = None,
        status: Optional[TipStatus] = None,
    ) -> Decimal:
        conditions: List[str] = []
        params: List[Any] = []
        if listing_id is not None:
            conditions.append("listing_id = ?")
            params.append(listing_id)
        if from_user_id is not None:
            conditions.append("from_user_id = ?")
            params.append(from_user_id)
        if status is not None:
            conditions.append("status = ?")
            params.append(status.value)

        where = " WHERE " + " AND ".join(conditions) if conditions else ""
        with self.db.connect() as conn:
            total = conn.execute(
                f"SELECT COALESCE(SUM(amount_cents), 0) FROM tips{where}", params
            ).fetchone()[0]
        return from_cents(total)

    def latest(self, limit: int) -> List[Tip]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM tips ORDER BY created_at DESC, rowid DESC LIMIT ?", (limit,)
            ).fetchall()
        return [_row_to_tip(row) for row in rows]
