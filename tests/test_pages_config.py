import pytest
from storefront.catalog import PRODUCTS, categories, find_product
from storefront.config import Settings, load_settings
from storefront.pages import classify_page
from storefront.render import describe_line, format_price, render_cart
from storefront.domain import Cart, CartLineItem


@pytest.mark.parametrize(
    "location, name",
    [
        ("https://shop.example/pdp.html", "PDP"),
        ("https://shop.example/index.html?id=3", "PDP"),
        ("https://shop.example/plp.html", "PLP"),
        ("https://shop.example/cart.html", "Cart"),
        ("https://shop.example/checkout.html", "Checkout"),
        ("https://shop.example/thankyou.html", "ThankYou"),
        ("https://shop.example/", "Home"),
    ],
)
def test_classify_page(location, name):
    page = classify_page(location)
    assert page.page_name == name
    assert page.page_type == name.lower()
    assert page.url == location


def test_settings_defaults(monkeypatch):
    for var in ("STOREFRONT_CART_KEY", "STOREFRONT_COUNTER_DELAY_MS", "STOREFRONT_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    settings = load_settings()
    assert settings.cart_key == "cart"
    assert settings.order_key == "orderId"
    assert settings.counter_delay == pytest.approx(0.01)


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("STOREFRONT_CART_KEY", "basket")
    monkeypatch.setenv("STOREFRONT_COUNTER_DELAY_MS", "50")
    monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "debug")
    settings = load_settings()
    assert settings == Settings(cart_key="basket", counter_delay_ms=50, log_level="DEBUG")


def test_catalog_lookup():
    assert find_product(PRODUCTS, "4").get_or_else(None).name == "Formal Blazer"
    assert find_product(PRODUCTS, "404").is_none()
    assert categories(PRODUCTS) == ("Jackets", "Shirts", "Dresses", "Blazers", "Jeans")


def test_render_cart_projection():
    cart = Cart(
        items=(CartLineItem(id="1", name="Jacket", category="Jackets", brand="Aurora", price=2499, image="", qty=2),)
    )
    view = render_cart(cart)
    assert view.total == 4998
    assert view.item_count == 2
    assert view.checkout_visible
    assert view.lines[0].image.startswith("https://via.placeholder.com")
    assert describe_line(view.lines[0]) == "₹2499 x 2 = ₹4998"
    assert format_price(0) == "₹0"


def test_configure_logging_sets_levels():
    import logging
    import structlog
    from storefront.logging_config import configure_logging

    try:
        configure_logging("debug")
        config = structlog.get_config()
        assert config["cache_logger_on_first_use"] is True
        assert isinstance(config["processors"][-1], structlog.dev.ConsoleRenderer)
        assert logging.getLogger("streamlit").level == logging.WARNING
    finally:
        structlog.reset_defaults()
        logging.getLogger("streamlit").setLevel(logging.NOTSET)
