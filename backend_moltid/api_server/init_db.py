"""
Create MoltID database tables.

Usage:
    python -m backend_moltid.api_server.init_db
"""

from __future__ import annotations

from backend_moltid.config.env import get_database_url, mask_database_url
from backend_moltid.database import init_db


def main() -> None:
    print("DB URL:", mask_database_url(get_database_url()))
    print("Creating MoltID DB tables...")
    init_db()
    print("Done.")


if __name__ == "__main__":
    main()
