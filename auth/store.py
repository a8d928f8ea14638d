"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper. Service and route
code never touches SQL directly.

Uniqueness:
  The UNIQUE constraint on users.username is the single source of truth for
  "username is already taken". create_user() inserts unconditionally and maps
  the database's IntegrityError to DuplicateKey, so two concurrent
  registrations for the same name resolve to exactly one Created no matter
  how their requests interleave. There is deliberately no SELECT-then-INSERT.

  Both columns are NOT NULL and the service never passes None, which leaves
  the UNIQUE constraint as the only one an insert can violate.

Failures:
  create_user() reports driver errors as a Fault outcome. Lookups and
  updates raise StoreFault, so callers see one typed error for an
  unavailable store rather than a raw SQLAlchemyError.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import Created, CreateOutcome, DuplicateKey, Fault, StoreFault, User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Engine helpers (shared with auth/sessions.py)
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def _describe(exc: Exception) -> str:
    return f"{type(exc).__name__}: {exc}"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///auth.db")
        outcome = store.create_user("alice", hash_password("secret1"))
        user = store.get_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine, tables=[_users])

    def create_user(self, username: str, password_hash: str) -> CreateOutcome:
        """Insert a new user.

        Returns Created(user) with the store-assigned id, DuplicateKey if the
        username is taken, or Fault(detail) for any other database failure.
        Never raises for database errors.
        """
        created_at = now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=username,
                        password_hash=password_hash,
                        created_at=created_at,
                    )
                )
                conn.commit()
                user_id = result.inserted_primary_key[0]
        except IntegrityError:
            return DuplicateKey(username=username)
        except SQLAlchemyError as exc:
            return Fault(detail=_describe(exc))
        return Created(
            user=User(
                id=user_id,
                username=username,
                password_hash=password_hash,
                created_at=created_at,
            )
        )

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        except SQLAlchemyError as exc:
            raise StoreFault(_describe(exc)) from exc
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        except SQLAlchemyError as exc:
            raise StoreFault(_describe(exc)) from exc
        return _row_to_user(row) if row is not None else None

    def update_password_hash(self, user_id: int, password_hash: str) -> bool:
        """Replace a user's stored hash. Used to upgrade argon2 parameters on login."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.update().where(_users.c.id == user_id).values(password_hash=password_hash)
                )
                conn.commit()
        except SQLAlchemyError as exc:
            raise StoreFault(_describe(exc)) from exc
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Delete a user record. Sessions bound to the id are left to expire."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_users.delete().where(_users.c.id == user_id))
                conn.commit()
        except SQLAlchemyError as exc:
            raise StoreFault(_describe(exc)) from exc
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )
