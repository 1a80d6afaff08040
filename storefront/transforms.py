import json
import random
from dataclasses import replace
from functools import reduce
from typing import Optional, Tuple
from .ftypes import Maybe, Either
from .domain import Cart, CartLineItem, Order, Product


# ============ Производные величины ============


def cart_total(cart: Cart) -> int:
    """Сумма price * qty по всем позициям"""
    return reduce(lambda acc, item: acc + item.price * item.qty, cart.items, 0)


def cart_item_count(cart: Cart) -> int:
    """Сумма количеств по всем позициям"""
    return reduce(lambda acc, item: acc + item.qty, cart.items, 0)


def find_line(cart: Cart, product_id: str) -> Maybe[CartLineItem]:
    """Безопасный поиск позиции корзины по id товара"""
    return Maybe.from_optional(
        next((item for item in cart.items if item.id == product_id), None)
    )


# ============ Cart operations (чистые функции) ============


def line_from_product(product: Product) -> CartLineItem:
    """Снимок полей товара с qty=1"""
    return CartLineItem(
        id=product.id,
        name=product.name,
        category=product.category,
        brand=product.brand,
        price=product.price,
        image=product.image,
        qty=1,
    )


def add_item(cart: Cart, product: Optional[Product]) -> Either[dict, Cart]:
    """
    Добавляет товар в корзину → Either[error, Cart]
    Повторное добавление увеличивает qty на 1, новая позиция встаёт в конец
    """
    if product is None or not product.id:
        return Either.left({"error": "Invalid product object provided to add_item"})

    if find_line(cart, product.id).is_some():
        updated_items = tuple(
            replace(item, qty=item.qty + 1) if item.id == product.id else item
            for item in cart.items
        )
    else:
        updated_items = cart.items + (line_from_product(product),)

    return Either.right(Cart(items=updated_items))


def remove_item(cart: Cart, product_id: str) -> Cart:
    """Возвращает новый Cart без позиции product_id (порядок остальных сохраняется)"""
    return Cart(items=tuple(filter(lambda item: item.id != product_id, cart.items)))


def update_quantity(cart: Cart, product_id: str, delta: int) -> Cart:
    """
    Меняет qty на delta.
    Неизвестный id - корзина без изменений, qty <= 0 - позиция удаляется
    """
    line = find_line(cart, product_id)
    if line.is_none():
        return cart

    new_qty = line.get_or_else(None).qty + delta
    if new_qty <= 0:
        return remove_item(cart, product_id)

    return Cart(
        items=tuple(
            replace(item, qty=new_qty) if item.id == product_id else item
            for item in cart.items
        )
    )


# ============ Checkout с Either ============


def new_order_id(rng: random.Random, prefix: str = "ORD") -> str:
    """Идентификатор заказа: префикс + случайное число из [0, 100000)"""
    return f"{prefix}{rng.randrange(100000)}"


def checkout(cart: Cart, order_id: str) -> Either[dict, Order]:
    """
    Оформляет корзину → Either[error, Order]
    Left если корзина пуста, Right(Order) со снимком позиций до очистки
    """
    if not cart.items:
        return Either.left({"error": "Your cart is empty!"})

    return Either.right(Order(id=order_id, items=cart.items, revenue=cart_total(cart)))


# ============ Сериализация ============


def line_to_dict(item: CartLineItem) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "category": item.category,
        "brand": item.brand,
        "price": item.price,
        "image": item.image,
        "qty": item.qty,
    }


def strict_int(value) -> Maybe[int]:
    """
    Только целые: int (не bool) или float без дробной части.
    2.9, true, "3", Infinity, NaN - Nothing
    """
    if isinstance(value, bool):
        return Maybe.nothing()
    if isinstance(value, int):
        return Maybe.some(value)
    if isinstance(value, float) and value.is_integer():
        return Maybe.some(int(value))
    return Maybe.nothing()


def _reject_constant(name: str):
    raise ValueError(f"Non-finite number {name} in cart payload")


def line_from_dict(data: dict) -> Either[dict, CartLineItem]:
    """Разбирает одну позицию; id обязателен, qty должен быть >= 1"""
    if not isinstance(data, dict) or not data.get("id"):
        return Either.left({"error": f"Line item without id: {data!r}"})

    qty = strict_int(data.get("qty", 1))
    price = strict_int(data.get("price", 0))
    if qty.is_none() or price.is_none():
        return Either.left({"error": f"Bad numeric field in line item {data['id']}"})
    qty, price = qty.get_or_else(0), price.get_or_else(0)

    if qty < 1:
        return Either.left({"error": f"Non-positive qty for line item {data['id']}"})

    return Either.right(
        CartLineItem(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            category=str(data.get("category", "")),
            brand=str(data.get("brand", "")),
            price=price,
            image=str(data.get("image", "")),
            qty=qty,
        )
    )


def serialize_cart(cart: Cart) -> str:
    return json.dumps([line_to_dict(item) for item in cart.items])


def deserialize_cart(text: str) -> Either[dict, Cart]:
    """
    JSON-текст → Either[error, Cart]
    Любая битая позиция делает весь payload невалидным
    """
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except (TypeError, ValueError, RecursionError) as e:
        return Either.left({"error": f"Unparseable cart payload: {e}"})

    if not isinstance(data, list):
        return Either.left({"error": "Cart payload is not a list"})

    def append_line(items: Tuple[CartLineItem, ...], line: CartLineItem) -> Either:
        if any(item.id == line.id for item in items):
            return Either.left({"error": f"Duplicate line item {line.id}"})
        return Either.right(items + (line,))

    def accumulate(acc: Either[dict, Tuple[CartLineItem, ...]], raw) -> Either:
        return acc.bind(
            lambda items: line_from_dict(raw).bind(
                lambda line: append_line(items, line)
            )
        )

    result = reduce(accumulate, data, Either.right(()))
    return result.map(lambda items: Cart(items=items))
