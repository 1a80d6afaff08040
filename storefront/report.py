from functools import reduce
from typing import Dict, Iterable, Tuple

from .events import PURCHASE, SC_ADD, SC_VIEW


# ============ Отчёты по data layer ============


def event_counts(events: Iterable[dict]) -> Dict[str, int]:
    """Количество событий по тегу: {event: count}"""

    def accumulate(acc: dict, event: dict) -> dict:
        name = event.get("event", "unknown")
        return {**acc, name: acc.get(name, 0) + 1}

    return reduce(accumulate, events, {})


def purchases(events: Iterable[dict]) -> Tuple[dict, ...]:
    return tuple(filter(lambda e: e.get("event") == PURCHASE, events))


def purchase_revenue(events: Iterable[dict]) -> int:
    """Суммарная выручка по событиям purchase"""
    return reduce(lambda acc, e: acc + e["order"]["revenue"], purchases(events), 0)


def orders_summary(events: Iterable[dict]) -> dict:
    """Сводка по заказам"""
    orders = purchases(events)
    revenue = purchase_revenue(orders)
    units = sum(p["quantity"] for e in orders for p in e["order"]["products"])

    return {
        "orders": len(orders),
        "revenue": revenue,
        "units_sold": units,
        "average_order_value": revenue / len(orders) if orders else 0.0,
        "order_ids": [e["order"]["id"] for e in orders],
    }


def cart_funnel(events: Iterable[dict]) -> dict:
    """Воронка: добавление → просмотр корзины → покупка"""
    counts = event_counts(events)
    adds = counts.get(SC_ADD, 0)
    bought = counts.get(PURCHASE, 0)

    return {
        "adds": adds,
        "cart_views": counts.get(SC_VIEW, 0),
        "purchases": bought,
        "conversion_rate": round(bought / adds * 100, 2) if adds > 0 else 0,
    }
