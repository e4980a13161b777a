#!/usr/bin/env python
"""
Migration helper for the patients database.

Usage:
    python run_migrations.py create "message"   # Autogenerate a revision from the models
    python run_migrations.py upgrade [rev]       # Apply migrations (default: head)
    python run_migrations.py downgrade [rev]     # Roll back (default: one step)
    python run_migrations.py current             # Show the applied revision
    python run_migrations.py history             # List all revisions
"""
import os
import sys

from alembic import command
from alembic.config import Config


alembic_cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))


def create_migration(message: str):
    command.revision(alembic_cfg, message=message, autogenerate=True)
    print(f"Revision '{message}' created. Apply it with: python run_migrations.py upgrade")


def upgrade_migrations(revision: str = "head"):
    print(f"Upgrading patients database to: {revision}")
    command.upgrade(alembic_cfg, revision)
    print("Upgrade complete")


def downgrade_migrations(revision: str = "-1"):
    print(f"Downgrading patients database to: {revision}")
    command.downgrade(alembic_cfg, revision)
    print("Downgrade complete")


def show_current():
    command.current(alembic_cfg, verbose=True)


def show_history():
    command.history(alembic_cfg)


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    action = sys.argv[1].lower()
    arg = sys.argv[2] if len(sys.argv) > 2 else None

    try:
        if action == "create":
            if not arg:
                print("Error: a revision message is required")
                sys.exit(1)
            create_migration(arg)
        elif action == "upgrade":
            upgrade_migrations(arg or "head")
        elif action == "downgrade":
            downgrade_migrations(arg or "-1")
        elif action == "current":
            show_current()
        elif action == "history":
            show_history()
        else:
            print(f"Unknown action: {action}")
            print(__doc__)
            sys.exit(1)
    except Exception as e:
        print(f"Migration command '{action}' failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
