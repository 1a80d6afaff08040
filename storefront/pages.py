from typing import Tuple
from .domain import PageInfo

# (маркер в адресе, pageName); первый совпавший выигрывает
PAGE_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("pdp.html", "id="), "PDP"),
    (("plp.html",), "PLP"),
    (("cart.html",), "Cart"),
    (("checkout.html",), "Checkout"),
    (("thankyou.html",), "ThankYou"),
)


def page_name(location: str) -> str:
    """Имя страницы по адресу; всё остальное - Home"""
    return next(
        (
            name
            for markers, name in PAGE_RULES
            if any(marker in location for marker in markers)
        ),
        "Home",
    )


def classify_page(location: str) -> PageInfo:
    name = page_name(location)
    return PageInfo(page_name=name, page_type=name.lower(), url=location)
