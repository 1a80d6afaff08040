from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str
    brand: str
    price: int  # минорные единицы валюты
    image: str = ""


@dataclass(frozen=True)
class CartLineItem:
    """Снимок полей товара на момент добавления + количество"""

    id: str
    name: str
    category: str
    brand: str
    price: int
    image: str
    qty: int

    @property
    def subtotal(self) -> int:
        return self.price * self.qty


@dataclass(frozen=True)
class Cart:
    items: Tuple[CartLineItem, ...] = ()


@dataclass(frozen=True)
class Order:
    id: str
    items: Tuple[CartLineItem, ...]
    revenue: int


@dataclass(frozen=True)
class PageInfo:
    page_name: str
    page_type: Optional[str]
    url: str
