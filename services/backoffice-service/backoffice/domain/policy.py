"""Role definitions and privilege-target evaluation."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping

from .contracts import NoSuchRoleError
from .user import Role

logger = logging.getLogger(__name__)

GRANT = "GRANT"
DENY = "DENY"

DEFAULT_POLICY: dict[str, Any] = {
    "roles": {
        "Backoffice:AbstractEditor": {
            "abstract": True,
            "privileges": {"Backoffice:Backend.General": GRANT},
        },
        "Backoffice:RestrictedEditor": {
            "parent_roles": ["Backoffice:AbstractEditor"],
        },
        "Backoffice:Editor": {
            "parent_roles": ["Backoffice:AbstractEditor"],
            "privileges": {"Backoffice:Backend.Module.Content": GRANT},
        },
        "Backoffice:UserManager": {
            "parent_roles": ["Backoffice:Editor"],
            "privileges": {"Backoffice:Backend.Module.Administration.Users": GRANT},
        },
        "Backoffice:Administrator": {
            "parent_roles": ["Backoffice:Editor"],
            "privileges": {
                "Backoffice:Backend.Module.Administration": GRANT,
                "Backoffice:Backend.Module.Administration.Users": GRANT,
            },
        },
    }
}


class PolicyService:
    """Resolves roles by identifier and evaluates privilege targets for role sets.

    A role set is granted a privilege target when at least one role in the set,
    or one of its ancestors, grants it and none of them denies it.
    """

    def __init__(self, policy: Mapping[str, Any] | None = None) -> None:
        self._roles: dict[str, Role] = {}
        for identifier, definition in (policy or DEFAULT_POLICY).get("roles", {}).items():
            self._roles[identifier] = Role(
                identifier=identifier,
                parent_identifiers=tuple(definition.get("parent_roles", ())),
                abstract=bool(definition.get("abstract", False)),
                privileges={
                    target: str(permission).upper()
                    for target, permission in definition.get("privileges", {}).items()
                },
            )

    @classmethod
    def from_file(cls, path: str) -> "PolicyService":
        """Load role definitions from a JSON policy file."""
        with open(path, encoding="utf-8") as handle:
            policy = json.load(handle)
        logger.info("loaded %d role definitions from %s", len(policy.get("roles", {})), path)
        return cls(policy)

    def has_role(self, identifier: str) -> bool:
        return identifier in self._roles

    def get_role(self, identifier: str) -> Role:
        try:
            return self._roles[identifier]
        except KeyError:
            raise NoSuchRoleError(f'role "{identifier}" does not exist') from None

    def get_roles(self, include_abstract: bool = False) -> list[Role]:
        """Return known roles ordered by identifier, abstract ones only on request."""
        return [
            role
            for identifier, role in sorted(self._roles.items())
            if include_abstract or not role.abstract
        ]

    def expand_roles(self, roles: Iterable[Role]) -> dict[str, Role]:
        """Return the given roles together with all of their ancestors."""
        expanded: dict[str, Role] = {}
        pending = list(roles)
        while pending:
            role = pending.pop()
            if role.identifier in expanded:
                continue
            expanded[role.identifier] = role
            pending.extend(self.get_role(parent) for parent in role.parent_identifiers)
        return expanded

    def is_privilege_target_granted_for_roles(
        self, roles: Iterable[Role], privilege_target: str
    ) -> bool:
        granted = False
        for role in self.expand_roles(roles).values():
            permission = role.privileges.get(privilege_target)
            if permission == DENY:
                return False
            if permission == GRANT:
                granted = True
        return granted
