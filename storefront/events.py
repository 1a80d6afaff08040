from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

import structlog

from .datalayer import DataLayer
from .domain import Cart, CartLineItem, Order, PageInfo
from .transforms import cart_total

logger = structlog.get_logger(__name__)

# Теги событий в data layer
CLICK = "click"
SC_ADD = "scAdd"
SC_VIEW = "scView"
SC_UPDATE = "scUpdate"
SC_REMOVE = "scRemove"
PURCHASE = "purchase"

SKIP_CLICK_TAGS = frozenset({"SCRIPT", "STYLE", "META", "LINK", "HEAD", "HTML", "BODY"})


def utc_timestamp() -> str:
    """ISO-8601 в UTC с миллисекундами и суффиксом Z"""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@dataclass(frozen=True)
class AnalyticsEvent:
    event: str
    page: PageInfo
    timestamp: str
    product: Optional[Tuple[dict, ...]] = None
    cart: Optional[dict] = None
    order: Optional[dict] = None
    click: Optional[dict] = None

    def to_dict(self) -> dict:
        """Структура для data layer; отсутствующие секции не выводятся"""
        page = {"pageName": self.page.page_name}
        if self.page.page_type is not None:
            page["pageType"] = self.page.page_type
        page["url"] = self.page.url

        payload = {
            "event": self.event,
            "eventInfo": {"eventName": self.event},
            "page": page,
        }
        if self.product is not None:
            payload["product"] = [dict(p) for p in self.product]
        if self.cart is not None:
            payload["cart"] = {
                "items": [dict(i) for i in self.cart["items"]],
                "total": self.cart["total"],
            }
        if self.order is not None:
            payload["order"] = {
                "id": self.order["id"],
                "revenue": self.order["revenue"],
                "products": [dict(p) for p in self.order["products"]],
            }
        if self.click is not None:
            payload["click"] = dict(self.click)
        payload["timestamp"] = self.timestamp
        return payload


# ============ Проекции ============


def product_projection(item: CartLineItem) -> dict:
    return {
        "productId": item.id,
        "productName": item.name,
        "productCategory": item.category,
        "brand": item.brand,
        "price": item.price,
        "quantity": item.qty,
    }


def cart_snapshot(cart: Cart) -> dict:
    return {
        "items": tuple(map(product_projection, cart.items)),
        "total": cart_total(cart),
    }


# ============ Конструкторы событий (чистые функции) ============


def build_add_event(
    page: PageInfo, line: CartLineItem, cart: Cart, ts: str
) -> AnalyticsEvent:
    """scAdd: товар с количеством после добавления + вся корзина"""
    return AnalyticsEvent(
        event=SC_ADD,
        page=page,
        timestamp=ts,
        product=(product_projection(line),),
        cart=cart_snapshot(cart),
    )


def build_view_event(page: PageInfo, cart: Cart, ts: str) -> AnalyticsEvent:
    return AnalyticsEvent(
        event=SC_VIEW, page=page, timestamp=ts, cart=cart_snapshot(cart)
    )


def build_update_event(
    page: PageInfo, line: CartLineItem, cart: Cart, ts: str
) -> AnalyticsEvent:
    """scUpdate несёт укороченную проекцию товара"""
    return AnalyticsEvent(
        event=SC_UPDATE,
        page=page,
        timestamp=ts,
        product=(
            {"productId": line.id, "productName": line.name, "quantity": line.qty},
        ),
        cart=cart_snapshot(cart),
    )


def build_remove_event(
    page: PageInfo, removed: CartLineItem, cart: Cart, ts: str
) -> AnalyticsEvent:
    """scRemove: поля удалённой позиции до удаления + корзина после"""
    return AnalyticsEvent(
        event=SC_REMOVE,
        page=page,
        timestamp=ts,
        product=(product_projection(removed),),
        cart=cart_snapshot(cart),
    )


def build_purchase_event(page: PageInfo, order: Order, ts: str) -> AnalyticsEvent:
    """purchase строится по снимку корзины до очистки"""
    products = tuple(map(product_projection, order.items))
    return AnalyticsEvent(
        event=PURCHASE,
        page=page,
        timestamp=ts,
        order={"id": order.id, "revenue": order.revenue, "products": products},
        cart={"items": products, "total": order.revenue},
    )


def build_click_event(
    page: PageInfo, element: dict, ts: str
) -> Optional[AnalyticsEvent]:
    """
    click по описанию элемента {tagName, textContent, id, className, href}.
    Служебные теги (SCRIPT, BODY, ...) не трекаются - возвращается None
    """
    tag_name = (element.get("tagName") or "").upper()
    if tag_name in SKIP_CLICK_TAGS:
        return None

    return AnalyticsEvent(
        event=CLICK,
        page=PageInfo(page_name=page.page_name, page_type=None, url=page.url),
        timestamp=ts,
        click={
            "elementText": (element.get("textContent") or "").strip()[:100],
            "tagName": tag_name,
            "id": element.get("id") or "",
            "className": element.get("className") or "",
            "href": element.get("href") or "",
        },
    )


# ============ Emitter ============


class EventEmitter:
    """
    Отправляет события в data layer.
    sink=None - события молча отбрасываются (без очереди и повторов)
    """

    def __init__(
        self,
        sink: Optional[DataLayer],
        page: Callable[[], PageInfo],
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.sink = sink
        self.page = page
        self.clock = clock

    def emit(
        self, build: Callable[[PageInfo, str], Optional[AnalyticsEvent]]
    ) -> Optional[dict]:
        """Строит событие из контекста страницы и времени и пушит его"""
        if self.sink is None:
            return None

        event = build(self.page(), self.clock())
        if event is None:
            return None

        payload = event.to_dict()
        self.sink.push(payload)
        logger.debug("Data layer push", event_name=event.event)
        return payload

    def add(self, line: CartLineItem, cart: Cart) -> Optional[dict]:
        return self.emit(lambda page, ts: build_add_event(page, line, cart, ts))

    def view(self, cart: Cart) -> Optional[dict]:
        return self.emit(lambda page, ts: build_view_event(page, cart, ts))

    def update(self, line: CartLineItem, cart: Cart) -> Optional[dict]:
        return self.emit(lambda page, ts: build_update_event(page, line, cart, ts))

    def remove(self, removed: CartLineItem, cart: Cart) -> Optional[dict]:
        return self.emit(lambda page, ts: build_remove_event(page, removed, cart, ts))

    def purchase(self, order: Order) -> Optional[dict]:
        return self.emit(lambda page, ts: build_purchase_event(page, order, ts))

    def click(self, element: dict) -> Optional[dict]:
        return self.emit(lambda page, ts: build_click_event(page, element, ts))
