"""Database repository for users, accounts and electronic addresses."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from psycopg import Cursor
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.user import Account, ElectronicAddress, PersonName, User

_USER_COLUMNS = "user_id, title, first_name, middle_name, last_name, other_name, alias, created_at"
_ACCOUNT_COLUMNS = (
    "account_id, user_id, account_identifier, authentication_provider_name, "
    "credentials_source, roles, created_at"
)
_ADDRESS_COLUMNS = "address_id, user_id, identifier, type, usage_type, approved"


def _is_uuid(value: str) -> bool:
    try:
        UUID(value)
    except ValueError:
        return False
    return True


@dataclass(slots=True)
class UserRecord:
    """Row projection used when mapping ``users`` tuples to domain aggregates."""

    user_id: str
    title: str
    first_name: str
    middle_name: str
    last_name: str
    other_name: str
    alias: str
    created_at: datetime


class UserRepository:
    """Postgres-backed user persistence; accounts and addresses are loaded with their user."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def list_users(self) -> list[User]:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY last_name, first_name, created_at")
                records = [UserRecord(str(row[0]), *row[1:]) for row in cur.fetchall()]
                return self._hydrate(cur, records)

    def get_user(self, user_id: str) -> User | None:
        if not _is_uuid(user_id):
            return None
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id = %s", (user_id,))
                row = cur.fetchone()
                if not row:
                    return None
                return self._hydrate(cur, [UserRecord(str(row[0]), *row[1:])])[0]

    def find_user_by_account(
        self, account_identifier: str, authentication_provider_name: str
    ) -> User | None:
        """Return the owner of the account with the given identifier and provider."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT user_id FROM accounts
                    WHERE account_identifier = %s AND authentication_provider_name = %s
                    """,
                    (account_identifier, authentication_provider_name),
                )
                row = cur.fetchone()
        return self.get_user(str(row[0])) if row else None

    def find_user_by_account_id(self, account_id: str) -> User | None:
        if not _is_uuid(account_id):
            return None
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute("SELECT user_id FROM accounts WHERE account_id = %s", (account_id,))
                row = cur.fetchone()
        return self.get_user(str(row[0])) if row else None

    def add_user(self, user: User) -> None:
        """Insert the user together with its accounts and electronic addresses."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"INSERT INTO users ({_USER_COLUMNS}) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)",
                    (user.user_id, *self._name_values(user.name), user.created_at),
                )
                for position, account in enumerate(user.accounts):
                    cur.execute(
                        """
                        INSERT INTO accounts (
                            account_id, user_id, position, account_identifier,
                            authentication_provider_name, credentials_source, roles, created_at
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                        """,
                        (
                            account.account_id,
                            user.user_id,
                            position,
                            account.account_identifier,
                            account.authentication_provider_name,
                            account.credentials_source,
                            sorted(account.role_identifiers),
                            account.created_at,
                        ),
                    )
                self._write_addresses(cur, user)
                conn.commit()

    def update_user(self, user: User) -> None:
        """Persist the user's name and replace its electronic addresses."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE users
                    SET title = %s, first_name = %s, middle_name = %s, last_name = %s,
                        other_name = %s, alias = %s
                    WHERE user_id = %s
                    """,
                    (*self._name_values(user.name), user.user_id),
                )
                cur.execute("DELETE FROM electronic_addresses WHERE user_id = %s", (user.user_id,))
                self._write_addresses(cur, user)
                conn.commit()

    def delete_user(self, user_id: str) -> None:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM users WHERE user_id = %s", (user_id,))
                conn.commit()

    def update_account(self, account: Account) -> None:
        """Persist credentials and roles of a single account."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE accounts
                    SET credentials_source = %s, roles = %s
                    WHERE account_id = %s
                    """,
                    (account.credentials_source, sorted(account.role_identifiers), account.account_id),
                )
                conn.commit()

    def _name_values(self, name: PersonName) -> tuple[str, ...]:
        return (
            name.title,
            name.first_name,
            name.middle_name,
            name.last_name,
            name.other_name,
            name.alias,
        )

    def _write_addresses(self, cur: Cursor, user: User) -> None:
        for position, address in enumerate(user.electronic_addresses):
            cur.execute(
                """
                INSERT INTO electronic_addresses (
                    address_id, user_id, position, identifier, type, usage_type, approved
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    address.address_id,
                    user.user_id,
                    position,
                    address.identifier,
                    address.type,
                    address.usage_type,
                    address.approved,
                ),
            )

    def _hydrate(self, cur: Cursor, records: list[UserRecord]) -> list[User]:
        """Load accounts and addresses for the given user rows and build the aggregates."""
        if not records:
            return []
        users = {record.user_id: self._map_record(record) for record in records}
        user_ids = list(users)

        cur.execute(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE user_id = ANY(%s::uuid[]) ORDER BY position",
            (user_ids,),
        )
        for row in cur.fetchall():
            users[str(row[1])].accounts.append(
                Account(
                    account_id=str(row[0]),
                    user_id=str(row[1]),
                    account_identifier=row[2],
                    authentication_provider_name=row[3],
                    credentials_source=row[4],
                    role_identifiers=set(row[5] or ()),
                    created_at=row[6],
                )
            )

        cur.execute(
            f"SELECT {_ADDRESS_COLUMNS} FROM electronic_addresses WHERE user_id = ANY(%s::uuid[]) ORDER BY position",
            (user_ids,),
        )
        for row in cur.fetchall():
            users[str(row[1])].electronic_addresses.append(
                ElectronicAddress(
                    address_id=str(row[0]),
                    identifier=row[2],
                    type=row[3],
                    usage_type=row[4],
                    approved=row[5],
                )
            )
        return list(users.values())

    def _map_record(self, record: UserRecord) -> User:
        """Convert a ``users`` row projection into the domain ``User`` dataclass."""
        return User(
            user_id=record.user_id,
            name=PersonName(
                title=record.title,
                first_name=record.first_name,
                middle_name=record.middle_name,
                last_name=record.last_name,
                other_name=record.other_name,
                alias=record.alias,
            ),
            created_at=record.created_at,
        )
