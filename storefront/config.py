import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    cart_key: str = "cart"
    order_key: str = "orderId"
    order_prefix: str = "ORD"
    counter_delay_ms: int = 10
    confirmation_url: str = "thankyou.html"
    store_path: str = ".storefront/local_storage.json"
    log_level: str = "INFO"

    @property
    def counter_delay(self) -> float:
        """Задержка debounce в секундах"""
        return self.counter_delay_ms / 1000


def load_settings() -> Settings:
    """Настройки из переменных окружения STOREFRONT_*"""
    defaults = Settings()
    return Settings(
        cart_key=os.environ.get("STOREFRONT_CART_KEY", defaults.cart_key),
        order_key=os.environ.get("STOREFRONT_ORDER_KEY", defaults.order_key),
        order_prefix=os.environ.get("STOREFRONT_ORDER_PREFIX", defaults.order_prefix),
        counter_delay_ms=int(
            os.environ.get("STOREFRONT_COUNTER_DELAY_MS", defaults.counter_delay_ms)
        ),
        confirmation_url=os.environ.get(
            "STOREFRONT_CONFIRMATION_URL", defaults.confirmation_url
        ),
        store_path=os.environ.get("STOREFRONT_STORE_PATH", defaults.store_path),
        log_level=os.environ.get("STOREFRONT_LOG_LEVEL", defaults.log_level).upper(),
    )
