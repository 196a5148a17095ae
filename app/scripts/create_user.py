"""Create a user (and their first workspace) for Onward CRM.

Usage:
    python -m app.scripts.create_user --email ada@example.com --password <password> [--name "Ada"]
"""

from __future__ import annotations

import argparse
import sys

from app.db.session import SessionLocal
from app.services.auth import create_user, get_user_by_email
from app.services.workspaces import create_workspace_for_user


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create an Onward CRM user")
    parser.add_argument("--email", required=True, help="Email address (login identity)")
    parser.add_argument("--password", required=True, help="Password for the new user")
    parser.add_argument("--name", default=None, help="Display name")
    parser.add_argument(
        "--workspace",
        default=None,
        help="Name of the user's first workspace (default: \"<name>'s Workspace\")",
    )
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        if get_user_by_email(db, args.email):
            print(f"User '{args.email}' already exists.")
            sys.exit(1)

        user = create_user(db, args.email, args.password, name=args.name)
        workspace = create_workspace_for_user(db, user, args.workspace)
        print(
            f"User '{user.email}' created successfully (id={user.id}), "
            f"owner of workspace '{workspace.name}' ({workspace.slug})."
        )
    finally:
        db.close()


if __name__ == "__main__":
    main()
