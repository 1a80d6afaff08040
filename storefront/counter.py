import asyncio
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class Badge:
    """Видимый значок с количеством товаров (бейдж корзины в навигации)"""

    text: str = "0"
    visible: bool = False


class DebouncedCounter:
    """
    Обновление бейджей с debounce.
    schedule() можно звать сколько угодно раз подряд: запись в бейджи
    произойдёт один раз через delay после последнего вызова и возьмёт
    количество на момент срабатывания таймера, а не на момент вызова.
    """

    def __init__(
        self,
        count: Callable[[], int],
        badges: Callable[[], Iterable[Badge]],
        delay: float = 0.01,
    ):
        self._count = count
        self._badges = badges
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        """Отменяет ожидающее обновление и заводит таймер заново"""
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Нет event loop (синхронный запуск скрипта) - обновляем сразу
            self.flush()
            return
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> int:
        """
        Применяет обновление немедленно.
        Пишет только в бейджи, текст которых отличается; возвращает число записей
        """
        self.cancel()
        count = self._count()
        text = str(count)

        written = 0
        for badge in self._badges():
            if badge.text != text:
                badge.text = text
                badge.visible = count > 0
                written += 1

        logger.debug("Cart badge updated", count=count, badges_written=written)
        return written

    def _fire(self) -> None:
        self._handle = None
        self.flush()
