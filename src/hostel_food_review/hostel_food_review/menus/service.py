from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..audit.service import AuditService
from ..common.datetime_utils import now_local, parse_iso_date, to_local
from ..common.validators import require_enum
from ..core.constants import MAX_MENU_ITEMS, MAX_MENU_TIMING, MAX_SPECIAL_LABEL
from ..core.enums import MealType, Role
from ..core.exceptions import ValidationError
from ..users.model import Profile
from ..users.scope import scoped_block
from .model import Menu
from .repository import MenuRepository


def resolve_menus(menus: Sequence[Menu], hostel_block: Optional[str]) -> list[Menu]:
    """One menu per meal: the block's own wins over the global one."""
    chosen: dict[MealType, Menu] = {}
    for menu in menus:
        if menu.hostel_block and menu.hostel_block != hostel_block:
            continue
        current = chosen.get(menu.meal_type)
        if current is None or (menu.hostel_block and not current.hostel_block):
            chosen[menu.meal_type] = menu
    return [chosen[m] for m in MealType if m in chosen]


class MenuService:
    def __init__(self, menus: MenuRepository, audit: AuditService):
        self._menus = menus
        self._audit = audit

    def menus_for(self, day: date, hostel_block: Optional[str]) -> list[Menu]:
        return resolve_menus(self._menus.list_for_date(day, hostel_block=hostel_block), hostel_block)

    def admin_menus(self, actor: Profile, *, day: date, hostel_block: Optional[str] = None) -> dict:
        block = scoped_block(actor, hostel_block)
        return {"date": day.isoformat(), "hostelBlock": block, "menus": [m.to_dict() for m in self.menus_for(day, block)]}

    def today_menus(self, user: Profile, *, hostel_block: Optional[str] = None, now: datetime | None = None) -> dict:
        today = to_local(now or now_local()).date()
        if user.role == Role.ADMIN:
            block = user.hostel_block
        else:
            block = (hostel_block or "").strip() or user.hostel_block
        if block == "all":
            block = None
        return {"date": today.isoformat(), "hostelBlock": block, "menus": [m.to_dict() for m in self.menus_for(today, block)]}

    def special_labels(self, start: date, end: date) -> dict[date, str]:
        return self._menus.special_labels(start, end)

    def save_menu(self, actor: Profile, body: dict, *, ip_address: Optional[str] = None) -> int:
        raw_date, meal_type = body.get("date"), body.get("mealType")
        items, timing = body.get("items"), body.get("timing")
        if not raw_date or not meal_type or not items or not timing:
            raise ValidationError("All fields are required")

        day = parse_iso_date(raw_date, "date")
        meal = require_enum(
            MealType,
            meal_type,
            f"Invalid meal type. Must be one of: {', '.join(m.value for m in MealType)}",
        )
        if not isinstance(items, str) or len(items) > MAX_MENU_ITEMS:
            raise ValidationError(f"Items must be text (max {MAX_MENU_ITEMS} characters)")
        if not isinstance(timing, str) or len(timing) > MAX_MENU_TIMING:
            raise ValidationError(f"Timing must be text (max {MAX_MENU_TIMING} characters)")

        special = body.get("specialLabel")
        if special is not None and not isinstance(special, str):
            raise ValidationError("Special label must be text")
        special = (special or "").strip() or None
        if special and len(special) > MAX_SPECIAL_LABEL:
            raise ValidationError(f"Special label must be at most {MAX_SPECIAL_LABEL} characters")

        block = scoped_block(actor, body.get("hostelBlock"))
        menu_id = self._menus.upsert(
            day=day,
            meal_type=meal,
            items=items.strip(),
            timing=timing.strip(),
            special_label=special,
            hostel_block=block,
        )
        self._audit.log_event(
            actor,
            "upsert_menu",
            "menu",
            menu_id,
            details={"date": day.isoformat(), "mealType": meal.value, "hostelBlock": block, "specialLabel": special},
            ip_address=ip_address,
        )
        return menu_id
