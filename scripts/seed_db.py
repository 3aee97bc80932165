from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hostel_food_review.hostel_food_review.database.bootstrap import apply_seed_sql, ensure_demo_users
from src.hostel_food_review.hostel_food_review.database.connection import DBConfig


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_users(
        db_config,
        super_admin_register_id=str(getattr(settings, "SUPER_ADMIN_REGISTER_ID", "SUPERADMIN")),
        super_admin_password=str(getattr(settings, "SUPER_ADMIN_PASSWORD", "superadmin123")),
    )
    print(f"OK: Seeded database -> {DBConfig.from_dict(db_config).describe()}")


if __name__ == "__main__":
    main()
