"""Agrégation des statistiques d'heures et de gains par fenêtre de dates.

Fenêtres (bornes incluses, calculées à partir de la date courante):
- today: la date du jour;
- week: du dernier jour de début de semaine (aujourd'hui compris) à aujourd'hui;
- month: du premier jour du mois à aujourd'hui.

Les heures sont arrondies au dixième, les gains (fenêtre mois) à l'unité, arrondi « half-up ».
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Callable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from clocwise.core.settings import WEEKDAYS
from clocwise.infra.repo.base import SECONDS_PER_HOUR
from clocwise.infra.repositories import TimeEntryRepository

_ONE_DECIMAL = Decimal("0.1")
_UNIT = Decimal("1")


@dataclass(frozen=True)
class StatsSummary:
    """Résumé exposé à l'API (chaînes décimales formatées)."""

    today_hours: str
    week_hours: str
    month_hours: str
    total_earnings: str


def week_start_for(today: dt.date, week_start: str = "sunday") -> dt.date:
    """Retourne le dernier `week_start` (nom de jour) antérieur ou égal à `today`."""
    first = WEEKDAYS.index(week_start.lower())
    return today - dt.timedelta(days=(today.weekday() - first) % 7)


def format_hours(total_seconds: int) -> str:
    """Secondes -> heures arrondies au dixième (`5400` -> `"1.5"`)."""
    hours = Decimal(total_seconds) / SECONDS_PER_HOUR
    return str(hours.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def format_earnings(earnings: Decimal) -> str:
    """Gains arrondis à l'unité (`Decimal("14.5")` -> `"15"`)."""
    return str(Decimal(earnings).quantize(_UNIT, rounding=ROUND_HALF_UP))


class StatsAggregator:
    """Calcule les totaux d'un utilisateur via le dépôt des saisies."""

    def __init__(
        self,
        time_entries: TimeEntryRepository,
        week_start: str = "sunday",
        today: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self._entries = time_entries
        self._week_start = week_start
        self._today = today

    def compute(self, user_id: int) -> StatsSummary:
        today = self._today()
        day = self._entries.window_totals(user_id, today, today)
        week = self._entries.window_totals(
            user_id, week_start_for(today, self._week_start), today
        )
        month = self._entries.window_totals(user_id, today.replace(day=1), today)
        return StatsSummary(
            today_hours=format_hours(day.total_seconds),
            week_hours=format_hours(week.total_seconds),
            month_hours=format_hours(month.total_seconds),
            total_earnings=format_earnings(month.earnings),
        )
