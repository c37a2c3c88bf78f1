"""Request binding and response models for the backoffice HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.networks import validate_email

from ..domain.user import (
    ELECTRONIC_ADDRESS_TYPES,
    ELECTRONIC_ADDRESS_USAGE_TYPES,
    Account,
    ElectronicAddress,
    PersonName,
    Role,
    User,
)
from ..messaging.flash import FlashMessage

PASSWORD_MIN_LENGTH = 1
PASSWORD_MAX_LENGTH = 255


def _validate_password_pair(value: list[str], *, allow_empty: bool) -> list[str]:
    """Check a ``[password, confirmation]`` pair the way the account forms submit it."""
    if allow_empty and not any(entry for entry in value):
        return value
    if len(value) != 2:
        raise ValueError("expected a password and its confirmation")
    password, confirmation = value
    if password != confirmation:
        raise ValueError("the passwords do not match")
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        raise ValueError(
            f"the password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
        )
    return value


class PersonNameModel(BaseModel):
    title: str = ""
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    other_name: str = ""
    alias: str = ""

    def to_domain(self) -> PersonName:
        return PersonName(**self.model_dump())


class ElectronicAddressRequest(BaseModel):
    """A contact address as submitted by the add-address form."""

    identifier: str = Field(..., min_length=1)
    type: str = "Email"
    usage_type: str = ""
    approved: bool = False

    @model_validator(mode="after")
    def _check_types(self) -> "ElectronicAddressRequest":
        if self.type not in ELECTRONIC_ADDRESS_TYPES:
            raise ValueError(f'unknown electronic address type "{self.type}"')
        if self.usage_type and self.usage_type not in ELECTRONIC_ADDRESS_USAGE_TYPES:
            raise ValueError(f'unknown usage type "{self.usage_type}"')
        if self.type == "Email":
            validate_email(self.identifier)
        return self

    def to_domain(self) -> ElectronicAddress:
        return ElectronicAddress(
            identifier=self.identifier,
            type=self.type,
            usage_type=self.usage_type,
            approved=self.approved,
        )


class UserRequest(BaseModel):
    name: PersonNameModel
    electronic_addresses: list[ElectronicAddressRequest] = Field(default_factory=list)

    def to_domain(self) -> User:
        return User(
            name=self.name.to_domain(),
            electronic_addresses=[address.to_domain() for address in self.electronic_addresses],
        )


class CreateUserRequest(BaseModel):
    """Payload of the create-user form."""

    username: str
    password: list[str]
    user: UserRequest
    role_identifiers: list[str]
    authentication_provider_name: str | None = None

    @field_validator("username")
    @classmethod
    def _username_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("the username must not be empty")
        return value

    @field_validator("password")
    @classmethod
    def _password_pair(cls, value: list[str]) -> list[str]:
        return _validate_password_pair(value, allow_empty=False)


class UpdateUserRequest(BaseModel):
    name: PersonNameModel

    def apply_to(self, user: User) -> User:
        user.name = self.name.to_domain()
        return user


class UpdateAccountRequest(BaseModel):
    role_identifiers: list[str]
    password: list[str] = Field(default_factory=list)

    @field_validator("password")
    @classmethod
    def _password_pair(cls, value: list[str]) -> list[str]:
        return _validate_password_pair(value, allow_empty=True)


class LoginRequest(BaseModel):
    username: str
    password: str
    authentication_provider_name: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class RoleResponse(BaseModel):
    identifier: str
    package_key: str
    name: str
    parent_roles: list[str]

    @classmethod
    def from_domain(cls, role: Role) -> "RoleResponse":
        return cls(
            identifier=role.identifier,
            package_key=role.package_key,
            name=role.name,
            parent_roles=list(role.parent_identifiers),
        )


class AccountResponse(BaseModel):
    """Serialised account; the credentials never leave the service."""

    account_id: str
    account_identifier: str
    authentication_provider_name: str
    roles: list[str]
    created_at: datetime

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        return cls(
            account_id=account.account_id,
            account_identifier=account.account_identifier,
            authentication_provider_name=account.authentication_provider_name,
            roles=sorted(account.role_identifiers),
            created_at=account.created_at,
        )


class ElectronicAddressResponse(BaseModel):
    address_id: str
    identifier: str
    type: str
    usage_type: str
    approved: bool

    @classmethod
    def from_domain(cls, address: ElectronicAddress) -> "ElectronicAddressResponse":
        return cls(
            address_id=address.address_id,
            identifier=address.identifier,
            type=address.type,
            usage_type=address.usage_type,
            approved=address.approved,
        )


class PersonNameResponse(PersonNameModel):
    full_name: str

    @classmethod
    def from_domain(cls, name: PersonName) -> "PersonNameResponse":
        return cls(
            title=name.title,
            first_name=name.first_name,
            middle_name=name.middle_name,
            last_name=name.last_name,
            other_name=name.other_name,
            alias=name.alias,
            full_name=name.full_name,
        )


class UserResponse(BaseModel):
    """Serialised representation of a `User` aggregate."""

    user_id: str
    name: PersonNameResponse
    primary_account: AccountResponse | None
    accounts: list[AccountResponse]
    electronic_addresses: list[ElectronicAddressResponse]
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        """Build a response model from the domain aggregate."""
        primary = user.primary_account
        return cls(
            user_id=user.user_id,
            name=PersonNameResponse.from_domain(user.name),
            primary_account=AccountResponse.from_domain(primary) if primary else None,
            accounts=[AccountResponse.from_domain(account) for account in user.accounts],
            electronic_addresses=[
                ElectronicAddressResponse.from_domain(address) for address in user.electronic_addresses
            ],
            created_at=user.created_at,
        )


class FlashMessageResponse(BaseModel):
    title: str
    message: str
    severity: str
    code: int | None = None

    @classmethod
    def from_domain(cls, message: FlashMessage) -> "FlashMessageResponse":
        return cls(
            title=message.title,
            message=message.rendered,
            severity=message.severity.value,
            code=message.code,
        )


class ViewResponse(BaseModel):
    template: str
    variables: dict[str, Any]


def serialize_view_value(value: Any) -> Any:
    """Turn domain objects inside view variables into JSON-compatible data."""
    if isinstance(value, User):
        return UserResponse.from_domain(value).model_dump(mode="json")
    if isinstance(value, Account):
        return AccountResponse.from_domain(value).model_dump(mode="json")
    if isinstance(value, Role):
        return RoleResponse.from_domain(value).model_dump(mode="json")
    if isinstance(value, ElectronicAddress):
        return ElectronicAddressResponse.from_domain(value).model_dump(mode="json")
    if isinstance(value, dict):
        return {key: serialize_view_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_view_value(item) for item in value]
    return value
