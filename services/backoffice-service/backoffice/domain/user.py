"""Domain aggregates for backoffice users, their accounts and contact addresses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid

ELECTRONIC_ADDRESS_TYPES: tuple[str, ...] = (
    "Aim",
    "Email",
    "Icq",
    "Jabber",
    "Msn",
    "Sip",
    "Skype",
    "Url",
    "Yahoo",
)
ELECTRONIC_ADDRESS_USAGE_TYPES: tuple[str, ...] = ("Home", "Work")


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Role:
    """A named grouping of privileges, identified as ``Package:Name``."""

    identifier: str
    parent_identifiers: tuple[str, ...] = ()
    abstract: bool = False
    privileges: dict[str, str] = field(default_factory=dict)

    @property
    def package_key(self) -> str:
        return self.identifier.partition(":")[0]

    @property
    def name(self) -> str:
        return self.identifier.partition(":")[2]


@dataclass(slots=True)
class Account:
    """Authentication identity of a user for one authentication provider."""

    account_identifier: str
    authentication_provider_name: str
    role_identifiers: set[str] = field(default_factory=set)
    credentials_source: str = ""
    account_id: str = field(default_factory=_new_id)
    user_id: str | None = None
    created_at: datetime = field(default_factory=_now)

    def has_role(self, role_identifier: str) -> bool:
        return role_identifier in self.role_identifiers


@dataclass(slots=True)
class PersonName:
    title: str = ""
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    other_name: str = ""
    alias: str = ""

    @property
    def full_name(self) -> str:
        parts = (self.title, self.first_name, self.middle_name, self.last_name, self.other_name)
        return " ".join(part for part in parts if part)

    def __str__(self) -> str:
        return self.full_name


@dataclass(slots=True)
class ElectronicAddress:
    """A typed contact endpoint (email, SIP, URL...) attached to a user."""

    identifier: str
    type: str = "Email"
    usage_type: str = ""
    approved: bool = False
    address_id: str = field(default_factory=_new_id)


@dataclass(slots=True)
class User:
    """Aggregate root for a backoffice user; the first account is the primary one."""

    name: PersonName = field(default_factory=PersonName)
    accounts: list[Account] = field(default_factory=list)
    electronic_addresses: list[ElectronicAddress] = field(default_factory=list)
    user_id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    @property
    def primary_account(self) -> Account | None:
        return self.accounts[0] if self.accounts else None

    @property
    def role_identifiers(self) -> set[str]:
        """Roles of the primary account, the basis of every authorization check."""
        account = self.primary_account
        return set(account.role_identifiers) if account else set()

    def add_electronic_address(self, address: ElectronicAddress) -> None:
        self.electronic_addresses.append(address)

    def remove_electronic_address(self, address: ElectronicAddress) -> None:
        self.electronic_addresses = [
            existing
            for existing in self.electronic_addresses
            if existing.address_id != address.address_id
        ]

    def get_electronic_address(self, address_id: str) -> ElectronicAddress | None:
        for address in self.electronic_addresses:
            if address.address_id == address_id:
                return address
        return None
