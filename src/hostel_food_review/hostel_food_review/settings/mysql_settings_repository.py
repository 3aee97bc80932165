from __future__ import annotations

import json
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchone, load_json
from .model import SiteSettings
from .repository import SiteSettingsRepository

SETTINGS_ROW_ID = 1


class MySQLSiteSettingsRepository(SiteSettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self) -> Optional[SiteSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT maintenance_mode, meal_timings FROM site_settings WHERE id=%s",
                (SETTINGS_ROW_ID,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return SiteSettings(
                maintenance_mode=as_bool(r.get("maintenance_mode")),
                meal_timings=load_json(r.get("meal_timings")),
            )

    def save_meal_timings(self, timings: dict) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO site_settings (id, meal_timings) VALUES (%s, %s)
                ON DUPLICATE KEY UPDATE meal_timings=VALUES(meal_timings)
                """,
                (SETTINGS_ROW_ID, json.dumps(timings)),
            )

    def set_maintenance_mode(self, enabled: bool) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO site_settings (id, maintenance_mode) VALUES (%s, %s)
                ON DUPLICATE KEY UPDATE maintenance_mode=VALUES(maintenance_mode)
                """,
                (SETTINGS_ROW_ID, 1 if enabled else 0),
            )
