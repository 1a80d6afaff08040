from typing import Tuple
from .domain import Product
from .ftypes import Maybe

_IMG = "https://images.unsplash.com/photo-{}?w=600&h=800&fit=crop&auto=format"


def _product(pid: str, name: str, category: str, price: int, photo: str) -> Product:
    return Product(
        id=pid,
        name=name,
        category=category,
        brand="Aurora",
        price=price,
        image=_IMG.format(photo),
    )


PRODUCTS: Tuple[Product, ...] = (
    _product("1", "Classic Denim Jacket", "Jackets", 2499, "1544022613-e87ca75a784a"),
    _product("2", "Casual White Shirt", "Shirts", 1299, "1583743814966-8936f5b7be1a"),
    _product("3", "Summer Floral Dress", "Dresses", 1999, "1515372039744-b8f02a3ae446"),
    _product("4", "Formal Blazer", "Blazers", 3999, "1539533018447-63fcce2678e3"),
    _product("5", "Black Skinny Jeans", "Jeans", 1799, "1542272604-787c3835535d"),
    _product("6", "Red Evening Gown", "Dresses", 4999, "1595777457583-95e059d581b8"),
)


def find_product(products: Tuple[Product, ...], pid: str) -> Maybe[Product]:
    """Безопасный поиск товара по ID"""
    return Maybe.from_optional(next((p for p in products if p.id == pid), None))


def categories(products: Tuple[Product, ...]) -> Tuple[str, ...]:
    """Категории в порядке первого появления"""
    return tuple(dict.fromkeys(p.category for p in products))
