"""RecordStore — DuckDB-backed persistence for users and messages.

Database Schema:
    users table:
        - id: uuid4 string primary key
        - username, email: display strings
        - profile_image: optional stored file reference
    messages table:
        - id: uuid4 string primary key
        - seq: insertion sequence, secondary sort key
        - user_id: owning user (not a foreign key, may dangle)
        - content: optional text body
        - image: optional stored file reference
        - created_at: creation time (UTC), primary sort key

Thread Safety:
    The DuckDB connection is NOT thread-safe. The service is used from the
    event loop only; blocking file I/O elsewhere is offloaded to threads, but
    record calls are not.

Every ``duckdb.Error`` is re-raised as ``StoreError``.
"""
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional

import duckdb

from ..errors import StoreError
from .schemas import Message, MessageView, User

logger = logging.getLogger(__name__)

_CREATE_USERS = """
CREATE TABLE IF NOT EXISTS users (
    id            VARCHAR PRIMARY KEY,
    username      VARCHAR,
    email         VARCHAR,
    profile_image VARCHAR
)
"""

_CREATE_MESSAGES_SEQ = "CREATE SEQUENCE IF NOT EXISTS messages_seq START 1"

_CREATE_MESSAGES = """
CREATE TABLE IF NOT EXISTS messages (
    id         VARCHAR PRIMARY KEY,
    seq        BIGINT DEFAULT nextval('messages_seq'),
    user_id    VARCHAR NOT NULL,
    content    VARCHAR,
    image      VARCHAR,
    created_at TIMESTAMP NOT NULL
)
"""

_INDEX = "CREATE INDEX IF NOT EXISTS idx_messages_created ON messages(created_at)"

_USER_COLUMNS = "id, username, email, profile_image"
_MESSAGE_COLUMNS = "id, user_id, content, image, created_at"


def _utcnow() -> datetime:
    # TIMESTAMP columns hold naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except duckdb.Error as exc:
        logger.error("[RecordStore] %s failed: %s", operation, exc)
        raise StoreError(f"{operation} failed: {exc}") from exc


class RecordStore:
    """Singleton store for User and Message records in DuckDB."""

    _instance: Optional["RecordStore"] = None
    _default_db_path: str = "chatmedia.duckdb"

    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path or self._default_db_path
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._initialize_db()
        logger.info("[RecordStore] Initialized with db=%s", self._db_path)

    @classmethod
    def get_instance(cls, db_path: Optional[str] = None) -> "RecordStore":
        """Get or create the singleton instance."""
        if cls._instance is None:
            cls._instance = cls(db_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Close and drop the singleton (for shutdown and tests)."""
        if cls._instance is not None:
            cls._instance.close()
            cls._instance = None

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        if self._connection is None:
            with _translate_errors("connect"):
                self._connection = duckdb.connect(self._db_path)
        return self._connection

    def _initialize_db(self) -> None:
        conn = self._get_connection()
        with _translate_errors("initialize schema"):
            conn.execute(_CREATE_USERS)
            conn.execute(_CREATE_MESSAGES_SEQ)
            conn.execute(_CREATE_MESSAGES)
            conn.execute(_INDEX)

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    # -----------------------------------------------------------------------
    # Users
    # -----------------------------------------------------------------------

    def create_user(
        self,
        username: str,
        email: str,
        profile_image: Optional[str] = None,
    ) -> User:
        user_id = str(uuid.uuid4())
        with _translate_errors("create user"):
            self._get_connection().execute(
                "INSERT INTO users (id, username, email, profile_image) VALUES (?, ?, ?, ?)",
                [user_id, username, email, profile_image],
            )
        return User(
            id=user_id, username=username, email=email, profile_image=profile_image
        )

    def get_user(self, user_id: str) -> Optional[User]:
        with _translate_errors("find user"):
            row = self._get_connection().execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", [user_id]
            ).fetchone()
        if not row:
            return None
        return User(id=row[0], username=row[1], email=row[2], profile_image=row[3])

    def set_profile_image(
        self,
        user_id: str,
        profile_image: str,
        expected: Optional[str],
    ) -> bool:
        """Compare-and-swap the user's profile image reference.

        The update only applies while the stored value still equals
        ``expected``.  Returns False when no row matched (the user is gone
        or the reference moved underneath us).
        """
        with _translate_errors("update profile image"):
            row = self._get_connection().execute(
                """
                UPDATE users SET profile_image = ?
                WHERE id = ? AND profile_image IS NOT DISTINCT FROM ?
                RETURNING id
                """,
                [profile_image, user_id, expected],
            ).fetchone()
        return row is not None

    # -----------------------------------------------------------------------
    # Messages
    # -----------------------------------------------------------------------

    def create_message(
        self,
        user_id: str,
        content: Optional[str] = None,
        image: Optional[str] = None,
    ) -> Message:
        message_id = str(uuid.uuid4())
        now = _utcnow()
        with _translate_errors("create message"):
            self._get_connection().execute(
                """
                INSERT INTO messages (id, user_id, content, image, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                [message_id, user_id, content, image, now],
            )
        return Message(
            id=message_id,
            user_id=user_id,
            content=content,
            image=image,
            created_at=now,
        )

    def get_message(self, message_id: str) -> Optional[Message]:
        """Fetch one message by id, or None. Served by GET /messages/{id}."""
        with _translate_errors("find message"):
            row = self._get_connection().execute(
                f"SELECT {_MESSAGE_COLUMNS} FROM messages WHERE id = ?", [message_id]
            ).fetchone()
        if not row:
            return None
        return Message(
            id=row[0], user_id=row[1], content=row[2], image=row[3], created_at=row[4]
        )

    def list_messages(self) -> List[MessageView]:
        """All messages, newest first, joined with their owner's fields.

        Ties on ``created_at`` fall back to insertion order (``seq``). A
        message whose user is gone keeps null enrichment fields.
        """
        with _translate_errors("list messages"):
            rows = self._get_connection().execute(
                """
                SELECT m.id, m.user_id, m.content, m.image, m.created_at,
                       u.username, u.profile_image
                FROM messages m
                LEFT JOIN users u ON u.id = m.user_id
                ORDER BY m.created_at DESC, m.seq DESC
                """
            ).fetchall()
        return [
            MessageView(
                id=r[0],
                user_id=r[1],
                content=r[2],
                image=r[3],
                created_at=r[4],
                username=r[5],
                profile_image=r[6],
            )
            for r in rows
        ]
