from __future__ import annotations

from backoffice.controllers.base import RedirectResult, ViewResult
from backoffice.domain.user import ElectronicAddress, PersonName, User
from backoffice.messaging.flash import Severity
from backoffice.security.passwords import verify_password

from conftest import ADMINISTRATOR, EDITOR, USER_MANAGER


def _only_message(controller):
    messages = controller.flash_messages.messages
    assert len(messages) == 1
    return messages[0]


def test_administrator_flag_comes_from_primary_account(controller_for, people):
    assert controller_for(people["admin"]).is_administrator
    assert controller_for(people["chief"]).is_administrator
    assert not controller_for(people["manager"]).is_administrator


def test_editor_may_not_edit_user_with_additional_roles(controller_for, people):
    controller = controller_for(people["editor"], "edit")

    result = controller.edit(people["chief"])

    assert result == RedirectResult(action="index")
    message = _only_message(controller)
    assert message.severity is Severity.error
    assert message.code == 1416225563
    assert message.rendered == 'Not allowed to edit the user "Chief Tester".'


def test_editor_may_edit_user_with_same_roles(controller_for, people):
    controller = controller_for(people["editor"], "edit")

    result = controller.edit(people["peer"])

    assert isinstance(result, ViewResult)
    assert result.template == "edit"
    assert result.variables["user"] is people["peer"]
    assert result.variables["electronic_address_usage_types"] == {"": "", "Home": "Home", "Work": "Work"}
    assert "Email" in result.variables["electronic_address_types"]
    assert controller.flash_messages.messages == []


def test_editing_allowed_iff_target_roles_are_subset(controller_for, people):
    manager = controller_for(people["manager"])

    assert manager.is_editing_allowed(people["editor"])
    assert manager.is_editing_allowed(people["manager"])
    assert not manager.is_editing_allowed(people["admin"])
    assert not manager.is_editing_allowed(people["chief"])


def test_administrator_may_edit_everybody(controller_for, people):
    controller = controller_for(people["admin"])

    assert all(controller.is_editing_allowed(user) for user in people.values())


def test_index_lists_users_with_meta(controller_for, people):
    controller = controller_for(people["manager"], "index")

    result = controller.index()

    assert result.template == "index"
    assert result.variables["title"] == "User Management :: Overview"
    meta = {entry["user"].user_id: entry for entry in result.variables["users_with_meta"]}
    assert meta[people["manager"].user_id]["is_current_user"]
    assert not meta[people["editor"].user_id]["is_current_user"]
    assert meta[people["editor"].user_id]["is_editing_allowed"]
    assert not meta[people["chief"].user_id]["is_editing_allowed"]


def test_new_offers_allowed_roles_and_providers(controller_for, people):
    manager_view = controller_for(people["manager"], "new").new()
    admin_view = controller_for(people["admin"], "new").new()

    assert [role.identifier for role in manager_view.variables["roles"]] == [EDITOR, USER_MANAGER]
    admin_roles = [role.identifier for role in admin_view.variables["roles"]]
    assert ADMINISTRATOR in admin_roles
    assert "Backoffice:AbstractEditor" not in admin_roles
    assert manager_view.variables["providers"] == {"Backoffice:Backend": "Backoffice:Backend"}


def test_create_with_own_roles_creates_user(controller_for, people, user_service):
    controller = controller_for(people["manager"], "create")

    result = controller.create(
        "newbie",
        ["pass", "pass"],
        User(name=PersonName(first_name="New", last_name="Bie")),
        [EDITOR],
    )

    assert result == RedirectResult(action="index")
    assert _only_message(controller).severity is Severity.ok
    created = user_service.get_user("newbie")
    assert created is not None
    assert created.role_identifiers == {EDITOR}
    assert verify_password("pass", created.primary_account.credentials_source)


def test_create_with_foreign_roles_is_rejected(controller_for, people, user_service):
    controller = controller_for(people["manager"], "create")

    result = controller.create(
        "sneaky",
        ["pass", "pass"],
        User(name=PersonName(first_name="Sneaky")),
        [EDITOR, ADMINISTRATOR],
    )

    assert result == RedirectResult(action="index")
    message = _only_message(controller)
    assert message.severity is Severity.error
    assert message.code == 1416225562
    assert user_service.get_user("sneaky") is None


def test_administrator_may_grant_any_role(controller_for, people, user_service):
    controller = controller_for(people["admin"], "create")

    controller.create("boss", ["pass", "pass"], User(name=PersonName(first_name="Boss")), [ADMINISTRATOR])

    assert user_service.get_user("boss").role_identifiers == {ADMINISTRATOR}


def test_create_with_unknown_role_is_rejected(controller_for, people, user_service):
    controller = controller_for(people["admin"], "create")

    controller.create("ghost", ["pass", "pass"], User(), ["Backoffice:Ghost"])

    assert _only_message(controller).severity is Severity.error
    assert user_service.get_user("ghost") is None


def test_update_persists_changes(controller_for, people, user_service):
    controller = controller_for(people["manager"], "update")
    editor = user_service.get_user_by_id(people["editor"].user_id)
    editor.name = PersonName(first_name="Renamed", last_name="Editor")

    result = controller.update(editor)

    assert result == RedirectResult(action="index")
    assert _only_message(controller).rendered == 'The user "Renamed Editor" has been updated.'
    assert user_service.get_user_by_id(editor.user_id).name.full_name == "Renamed Editor"


def test_update_denied_leaves_user_untouched(controller_for, people, user_service):
    controller = controller_for(people["manager"], "update")
    chief = user_service.get_user_by_id(people["chief"].user_id)
    chief.name = PersonName(first_name="Hijacked")

    controller.update(chief)

    assert _only_message(controller).severity is Severity.error
    assert user_service.get_user_by_id(chief.user_id).name.first_name == "Chief"


def test_delete_peer_with_subset_roles(controller_for, people, user_service):
    controller = controller_for(people["editor"], "delete")

    result = controller.delete(people["peer"])

    assert result == RedirectResult(action="index")
    assert _only_message(controller).severity is Severity.notice
    assert user_service.get_user_by_id(people["peer"].user_id) is None


def test_delete_user_with_additional_roles_is_denied(controller_for, people, user_service):
    controller = controller_for(people["editor"], "delete")

    controller.delete(people["admin"])

    assert _only_message(controller).code == 1416225564
    assert user_service.get_user_by_id(people["admin"].user_id) is not None


def test_nobody_may_delete_themselves(controller_for, people, user_service):
    for name in ("admin", "editor"):
        controller = controller_for(people[name], "delete")

        result = controller.delete(people[name])

        assert result == RedirectResult(action="index")
        assert _only_message(controller).severity is Severity.warning
        assert user_service.get_user_by_id(people[name].user_id) is not None


def test_edit_account_view(controller_for, people):
    controller = controller_for(people["manager"], "editAccount")

    result = controller.edit_account(people["editor"].primary_account)

    assert result.template == "edit_account"
    assert result.variables["user"].user_id == people["editor"].user_id


def test_update_own_account_without_module_access_is_rejected(controller_for, people, user_service):
    manager = people["manager"]
    controller = controller_for(manager, "updateAccount")

    result = controller.update_account(manager.primary_account, [EDITOR])

    assert result == RedirectResult(action="edit", arguments={"user": manager.user_id})
    message = _only_message(controller)
    assert message.severity is Severity.warning
    assert message.code == 1416501197
    assert user_service.get_user_by_id(manager.user_id).role_identifiers == {EDITOR, USER_MANAGER}


def test_administrator_cannot_lock_themselves_out(controller_for, people, user_service):
    admin = people["admin"]
    controller = controller_for(admin, "updateAccount")

    controller.update_account(admin.primary_account, [EDITOR], ["new", "new"])

    assert _only_message(controller).severity is Severity.warning
    stored = user_service.get_user_by_id(admin.user_id)
    assert stored.role_identifiers == {ADMINISTRATOR}
    assert verify_password("secret", stored.primary_account.credentials_source)


def test_update_own_account_keeping_module_access(controller_for, people, user_service):
    admin = people["admin"]
    controller = controller_for(admin, "updateAccount")

    controller.update_account(admin.primary_account, [ADMINISTRATOR, EDITOR])

    assert _only_message(controller).severity is Severity.ok
    assert user_service.get_user_by_id(admin.user_id).role_identifiers == {ADMINISTRATOR, EDITOR}


def test_blank_password_keeps_credentials(controller_for, people, user_service):
    controller = controller_for(people["manager"], "updateAccount")
    editor = people["editor"]
    before = user_service.get_user_by_id(editor.user_id).primary_account.credentials_source

    for password in ([], ["", ""], ["   ", "   "]):
        controller.update_account(editor.primary_account, [EDITOR], password)

    assert user_service.get_user_by_id(editor.user_id).primary_account.credentials_source == before


def test_non_blank_password_replaces_credentials(controller_for, people, user_service):
    controller = controller_for(people["manager"], "updateAccount")
    editor = people["editor"]

    result = controller.update_account(editor.primary_account, [EDITOR], ["changed", "changed"])

    assert result == RedirectResult(action="edit", arguments={"user": editor.user_id})
    account = user_service.get_user_by_id(editor.user_id).primary_account
    assert verify_password("changed", account.credentials_source)
    assert not verify_password("secret", account.credentials_source)


def test_non_administrator_cannot_assign_foreign_roles(controller_for, people, user_service):
    controller = controller_for(people["manager"], "updateAccount")
    editor = people["editor"]

    controller.update_account(editor.primary_account, [EDITOR, ADMINISTRATOR])

    assert _only_message(controller).severity is Severity.error
    assert user_service.get_user_by_id(editor.user_id).role_identifiers == {EDITOR}


def test_update_account_with_unknown_role_is_rejected(controller_for, people, user_service):
    controller = controller_for(people["admin"], "updateAccount")
    editor = people["editor"]

    result = controller.update_account(editor.primary_account, [EDITOR, "Backoffice:Ghost"], ["new", "new"])

    assert result == RedirectResult(action="edit", arguments={"user": editor.user_id})
    message = _only_message(controller)
    assert message.severity is Severity.error
    assert message.code == 1416225571
    account = user_service.get_user_by_id(editor.user_id).primary_account
    assert account.role_identifiers == {EDITOR}
    assert verify_password("secret", account.credentials_source)

def test_electronic_addresses_are_added_and_removed(controller_for, people, user_service):
    controller = controller_for(people["manager"], "createElectronicAddress")
    editor = user_service.get_user_by_id(people["editor"].user_id)
    address = ElectronicAddress(identifier="editor@example.com", type="Email", usage_type="Work")

    result = controller.create_electronic_address(editor, address)

    assert result == RedirectResult(action="edit", arguments={"user": editor.user_id})
    stored = user_service.get_user_by_id(editor.user_id)
    assert [a.identifier for a in stored.electronic_addresses] == ["editor@example.com"]

    controller = controller_for(people["manager"], "deleteElectronicAddress")
    controller.delete_electronic_address(stored, stored.electronic_addresses[0])

    assert _only_message(controller).rendered == (
        'The electronic address "editor@example.com" (Email) has been deleted for "Editor Tester".'
    )
    assert user_service.get_user_by_id(editor.user_id).electronic_addresses == []


def test_electronic_address_of_protected_user_is_denied(controller_for, people, user_service):
    controller = controller_for(people["manager"], "createElectronicAddress")
    chief = user_service.get_user_by_id(people["chief"].user_id)

    result = controller.create_electronic_address(chief, ElectronicAddress(identifier="x@example.com"))

    assert result == RedirectResult(action="index")
    assert _only_message(controller).code == 1416225566
    assert user_service.get_user_by_id(chief.user_id).electronic_addresses == []
