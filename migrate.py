#!/usr/bin/env python3
"""Create the CRM tables and the default company settings row."""

from database.db import db
from database.init import ALL_MODELS, init_from_env
from services.settings_service import ensure_settings_row


def main() -> None:
    init_from_env()
    db.connect(reuse_if_open=True)
    db.create_tables(ALL_MODELS, safe=True)
    ensure_settings_row()
    db.close()


if __name__ == "__main__":
    main()
