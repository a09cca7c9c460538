from __future__ import annotations

import argparse
import getpass
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.staff_management.staff_management.database.bootstrap import upsert_admin


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or reset an admin login.")
    parser.add_argument("--username", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--super", dest="super_admin", action="store_true", help="grant the super_admin role")
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    if len(password) < 6:
        parser.error("password must be at least 6 characters")

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    upsert_admin(
        dict(settings.DB_CONFIG),
        username=args.username,
        email=args.email.lower(),
        password=password,
        role="super_admin" if args.super_admin else "admin",
    )
    print(f"OK: admin {args.email.lower()} ready")


if __name__ == "__main__":
    main()
