"""Operator command line for admin accounts.

Usage::

    storefront-admin create
    storefront-admin list
    storefront-admin edit
    storefront-admin delete
    storefront-admin sessions
    storefront-admin release

Commands prompt interactively. ``edit`` changes an admin's name, email or
password and flags the admin for forced logout; every token issued before the
edit stops working.
"""
import argparse
import getpass
import sys
from typing import Callable, List, Optional

from storefront_admin.config import settings
from storefront_admin.errors import AccountError
from storefront_admin.models.admin_user import AdminUser
from storefront_admin.services.accounts import (
    create_admin,
    delete_admin,
    edit_credential,
    list_admins,
)
from storefront_admin.services.session_store import (
    InMemorySessionStore,
    SessionStore,
    build_session_store,
)
from storefront_admin.utils.logger import logger

Prompt = Callable[[str], str]

_RULE = "-" * 45


def _print_admin_menu(admins: List[AdminUser]) -> None:
    print(f"\nFound {len(admins)} admin user(s):\n")
    for index, admin in enumerate(admins, start=1):
        print(f"{index}. {admin.name} ({admin.email})")


def _select_admin(admins: List[AdminUser], prompt: Prompt, verb: str) -> Optional[AdminUser]:
    """Ask for a 1-based menu number; None means cancelled."""
    selection = prompt(f"\nEnter the number of the admin to {verb} (or 0 to cancel): ").strip()
    try:
        index = int(selection) - 1
    except ValueError:
        return None
    if index < 0 or index >= len(admins):
        return None
    return admins[index]


def _warn_if_process_local(store: SessionStore) -> None:
    if isinstance(store, InMemorySessionStore):
        print(
            "Note: SESSION_STORE=memory, so this command cannot reach the registry of a "
            "running server. Tokens issued before this change are still rejected by the "
            "credential timestamp check."
        )


def cmd_create(db, store: SessionStore, prompt: Prompt, secret: Prompt) -> int:
    name = prompt("Enter admin name: ").strip()
    email = prompt("Enter admin email: ").strip()
    password = secret("Enter admin password: ")

    if not name or not email or not password:
        print("Error: Name, email, and password are required", file=sys.stderr)
        return 1

    try:
        admin = create_admin(db, name, email, password)
    except AccountError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print("\nAdmin created successfully:")
    print(f"Name: {admin.name}")
    print(f"Email: {admin.email}")
    print(f"ID: {admin.admin_id}")
    return 0


def cmd_list(db, store: SessionStore, prompt: Prompt, secret: Prompt) -> int:
    admins = list_admins(db)
    if not admins:
        print("No admin users found")
        return 0

    print(f"\nFound {len(admins)} admin user(s):\n")
    for index, admin in enumerate(admins, start=1):
        print(f"Admin #{index}:")
        print(f"ID: {admin.admin_id}")
        print(f"Name: {admin.name}")
        print(f"Email: {admin.email}")
        print(f"Created: {admin.created_at.isoformat()}")
        print(f"Last updated: {admin.last_updated.isoformat()}")
        print(_RULE)
    return 0


def cmd_edit(db, store: SessionStore, prompt: Prompt, secret: Prompt) -> int:
    admins = list_admins(db)
    if not admins:
        print("No admin users found")
        return 0

    _print_admin_menu(admins)
    selected = _select_admin(admins, prompt, "edit")
    if selected is None:
        print("Operation cancelled")
        return 0

    print(f"\nEditing admin: {selected.name} ({selected.email})")
    print("\nLeave field empty to keep current value")

    new_name = prompt(f"Name [{selected.name}]: ").strip()
    new_email = prompt(f"Email [{selected.email}]: ").strip()
    new_password = secret("New Password (leave empty to keep current): ")

    print("\nSummary of changes:")
    print(f"Name: {selected.name} -> {new_name or '(unchanged)'}")
    print(f"Email: {selected.email} -> {new_email or '(unchanged)'}")
    print(f"Password: {'********' if new_password else '(unchanged)'}")

    confirm = prompt("\nApply these changes? (yes/no): ")
    if confirm.strip().lower() != "yes":
        print("Operation cancelled")
        return 0

    try:
        result = edit_credential(
            db,
            store,
            selected.admin_id,
            name=new_name or None,
            email=new_email or None,
            password=new_password or None,
        )
    except AccountError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    admin = result.admin
    print("\nAdmin updated successfully:")
    print(f"Name: {admin.name}")
    print(f"Email: {admin.email}")
    print(f"ID: {admin.admin_id}")

    print(f"\n{_RULE}")
    print("IMPORTANT: Admin credentials have been updated.")
    print("A force logout flag has been set for this admin account.")
    if result.had_active_session:
        print("An active session was found and will be terminated.")
        print("The admin will be logged out at their next request or session check.")
    else:
        print("No active session was found.")
        print("Tokens issued before this change will be rejected.")
    print("The admin will need to log out and log in with the new credentials.")
    print(_RULE)
    _warn_if_process_local(store)
    return 0


def cmd_delete(db, store: SessionStore, prompt: Prompt, secret: Prompt) -> int:
    admins = list_admins(db)
    if not admins:
        print("No admin users found")
        return 0

    _print_admin_menu(admins)
    selected = _select_admin(admins, prompt, "delete")
    if selected is None:
        print("Operation cancelled")
        return 0

    confirm = prompt(
        f'Are you sure you want to delete admin "{selected.name}" ({selected.email})? (yes/no): '
    )
    if confirm.strip().lower() != "yes":
        print("Operation cancelled")
        return 0

    name, email = selected.name, selected.email
    try:
        delete_admin(db, store, selected.admin_id)
    except AccountError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f'\nAdmin "{name}" ({email}) deleted successfully')
    return 0


def cmd_sessions(db, store: SessionStore, prompt: Prompt, secret: Prompt) -> int:
    entries = store.list_sessions()
    if not entries:
        print("No tracked admin sessions")
    for entry in entries:
        flag = "FORCE LOGOUT PENDING" if entry.force_logout else "active"
        print(f"{entry.admin_id}  issued {entry.issued_at.isoformat()}  {flag}")
    _warn_if_process_local(store)
    return 0


def cmd_release(db, store: SessionStore, prompt: Prompt, secret: Prompt) -> int:
    """Clear a pending force-logout for an admin who has no token left to log out with."""
    admins = list_admins(db)
    if not admins:
        print("No admin users found")
        return 0

    _print_admin_menu(admins)
    selected = _select_admin(admins, prompt, "release")
    if selected is None:
        print("Operation cancelled")
        return 0

    store.clear_flag(selected.admin_id)
    store.remove(selected.admin_id)
    logger.info(
        f"Session entry released for admin {selected.admin_id}",
        extra={"admin_id": selected.admin_id, "action": "release_session"},
    )
    print(f"Session entry cleared for {selected.name} ({selected.email})")
    _warn_if_process_local(store)
    return 0


COMMANDS = {
    "create": (cmd_create, "Create an admin user"),
    "list": (cmd_list, "List admin users"),
    "edit": (cmd_edit, "Edit an admin user and force their sessions to end"),
    "delete": (cmd_delete, "Delete an admin user (the last admin is kept)"),
    "sessions": (cmd_sessions, "Show the session registry"),
    "release": (cmd_release, "Clear a pending force logout for an admin"),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storefront-admin",
        description="Manage storefront admin accounts",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, (_, help_text) in COMMANDS.items():
        subparsers.add_parser(name, help=help_text)
    return parser


def main(
    argv: Optional[List[str]] = None,
    session_factory=None,
    store: Optional[SessionStore] = None,
    prompt: Prompt = input,
    secret: Prompt = getpass.getpass,
) -> int:
    args = build_parser().parse_args(argv)

    if session_factory is None:
        from storefront_admin.database import SessionLocal
        session_factory = SessionLocal
    if store is None:
        store = build_session_store(settings.SESSION_STORE, session_factory)

    handler, _ = COMMANDS[args.command]
    db = session_factory()
    try:
        return handler(db, store, prompt, secret)
    except (KeyboardInterrupt, EOFError):
        print("\nOperation cancelled")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
