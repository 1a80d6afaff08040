import random
from typing import Callable, Iterable, Optional

import structlog

from .config import Settings
from .counter import Badge, DebouncedCounter
from .domain import Cart, Order, Product
from .events import EventEmitter
from .ftypes import Either, Maybe
from .render import CartView, render_cart
from . import transforms
from .store import CartStore, KeyValueStore, MemoryStore, StoreError

logger = structlog.get_logger(__name__)


def _noop(*_args) -> None:
    return None


class CartMutator:
    """
    Единственный владелец текущей корзины.
    Каждая мутация: новая корзина → сохранение → бейдж → ровно одно событие.
    Перерисовка страницы корзины - через колбэк on_change
    """

    def __init__(
        self,
        store: CartStore,
        emitter: EventEmitter,
        session: Optional[KeyValueStore] = None,
        badges: Callable[[], Iterable[Badge]] = tuple,
        on_change: Callable[[Cart], None] = _noop,
        notify: Callable[[str], None] = _noop,
        navigate: Callable[[str], None] = _noop,
        rng: Optional[random.Random] = None,
        settings: Settings = Settings(),
    ):
        self.store = store
        self.emitter = emitter
        self.session = session if session is not None else MemoryStore()
        self.on_change = on_change
        self.notify = notify
        self.navigate = navigate
        self.rng = rng or random.Random()
        self.settings = settings
        self.counter = DebouncedCounter(
            count=self.cart_item_count, badges=badges, delay=settings.counter_delay
        )
        self.cart = Cart()

    # ============ Состояние ============

    def load(self) -> Cart:
        """Гидратация из хранилища при загрузке страницы"""
        self.cart = self.store.load()
        self.counter.schedule()
        return self.cart

    def cart_total(self) -> int:
        return transforms.cart_total(self.cart)

    def cart_item_count(self) -> int:
        return transforms.cart_item_count(self.cart)

    def _commit(self, cart: Cart) -> None:
        self.cart = cart
        self.store.save(cart)
        self.counter.schedule()

    # ============ Мутации ============

    def add_item(self, product: Optional[Product]) -> Either[dict, Cart]:
        result = transforms.add_item(self.cart, product)
        if result.is_left:
            logger.error("Rejected add to cart", error=result.value["error"])
            return result

        self._commit(result.get_or_else(self.cart))
        self.notify(f"{product.name} added to cart!")

        line = transforms.find_line(self.cart, product.id).get_or_else(None)
        self.emitter.add(line, self.cart)
        logger.info("Item added to cart", product_id=product.id, qty=line.qty)
        return result

    def update_quantity(self, product_id: str, delta: int) -> Cart:
        line = transforms.find_line(self.cart, product_id)
        if line.is_none():
            return self.cart

        if line.get_or_else(None).qty + delta <= 0:
            return self.remove_item(product_id)

        self._commit(transforms.update_quantity(self.cart, product_id, delta))
        self.on_change(self.cart)

        updated = transforms.find_line(self.cart, product_id).get_or_else(None)
        self.emitter.update(updated, self.cart)
        logger.info("Cart quantity updated", product_id=product_id, qty=updated.qty)
        return self.cart

    def remove_item(self, product_id: str) -> Cart:
        removed = transforms.find_line(self.cart, product_id)
        if removed.is_none():
            return self.cart

        self._commit(transforms.remove_item(self.cart, product_id))
        self.on_change(self.cart)

        self.emitter.remove(removed.get_or_else(None), self.cart)
        logger.info("Item removed from cart", product_id=product_id)
        return self.cart

    def checkout(self) -> Either[dict, Order]:
        """
        Пустая корзина - видимый отказ без изменений и событий.
        Иначе: purchase по корзине до очистки → очистка → сохранение →
        orderId в сессию → переход на страницу подтверждения
        """
        if not self.cart.items:
            result = transforms.checkout(self.cart, "")
        else:
            order_id = transforms.new_order_id(self.rng, self.settings.order_prefix)
            result = transforms.checkout(self.cart, order_id)

        if result.is_left:
            self.notify(result.value["error"])
            logger.info("Checkout rejected", error=result.value["error"])
            return result

        order = result.get_or_else(None)
        self.emitter.purchase(order)

        self._commit(Cart())
        try:
            self.session.set_item(self.settings.order_key, order.id)
        except StoreError as e:
            logger.error("Error storing order id", order_id=order.id, error=str(e))

        logger.info("Checkout complete", order_id=order.id, revenue=order.revenue)
        self.navigate(self.settings.confirmation_url)
        return result

    # ============ Страница корзины ============

    def view_cart(self) -> CartView:
        """Представление корзины + событие scView (в том числе для пустой)"""
        self.emitter.view(self.cart)
        return render_cart(self.cart)

    def confirmed_order_id(self) -> Maybe[str]:
        """orderId последнего оформления для страницы подтверждения"""
        try:
            return Maybe.from_optional(self.session.get_item(self.settings.order_key))
        except StoreError as e:
            logger.warning("Error reading order id", error=str(e))
            return Maybe.nothing()
