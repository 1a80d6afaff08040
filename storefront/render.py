from dataclasses import dataclass
from typing import Tuple
from .domain import Cart, CartLineItem
from .transforms import cart_item_count, cart_total


@dataclass(frozen=True)
class CartLineView:
    id: str
    name: str
    category: str
    image: str
    price: int
    qty: int
    subtotal: int


@dataclass(frozen=True)
class CartView:
    lines: Tuple[CartLineView, ...]
    total: int
    item_count: int

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def checkout_visible(self) -> bool:
        return bool(self.lines)


PLACEHOLDER_IMAGE = "https://via.placeholder.com/80x80?text=Product"


def format_price(amount: int) -> str:
    return f"₹{amount}"


def _line_view(item: CartLineItem) -> CartLineView:
    return CartLineView(
        id=item.id,
        name=item.name,
        category=item.category,
        image=item.image or PLACEHOLDER_IMAGE,
        price=item.price,
        qty=item.qty,
        subtotal=item.subtotal,
    )


def render_cart(cart: Cart) -> CartView:
    """Проекция корзины в представление (без побочных эффектов)"""
    return CartView(
        lines=tuple(map(_line_view, cart.items)),
        total=cart_total(cart),
        item_count=cart_item_count(cart),
    )


def describe_line(line: CartLineView) -> str:
    """Строка вида '₹1299 x 2 = ₹2598'"""
    return f"{format_price(line.price)} x {line.qty} = {format_price(line.subtotal)}"
