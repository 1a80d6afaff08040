from functools import reduce
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)


class DataLayer:
    """
    Append-only последовательность событий аналитики (аналог adobeDataLayer).
    Внешние потребители читают её; подписчики вызываются на каждый push
    с подходящим именем события
    """

    def __init__(self):
        self._events: List[dict] = []
        self._listeners: Tuple[Tuple[str, Callable[[dict], Any]], ...] = ()

    def push(self, event: dict) -> None:
        self._events.append(event)

        matching = tuple(
            handler for name, handler in self._listeners if name == event.get("event")
        )
        for handler in matching:
            try:
                handler(event)
            except Exception:
                # Слушатель не должен ломать эмиссию
                logger.exception(
                    "Data layer listener failed", event_name=event.get("event")
                )

    def add_event_listener(
        self, event_name: str, handler: Callable[[dict], Any]
    ) -> None:
        self._listeners = self._listeners + ((event_name, handler),)

    def get_last_push(self) -> Optional[dict]:
        return self._events[-1] if self._events else None

    def get(self, path: str) -> Any:
        """
        Значение по пути через точку в последнем push: get("cart.total").
        Любой отсутствующий сегмент даёт None
        """

        def step(obj: Any, key: str) -> Any:
            if isinstance(obj, dict):
                return obj.get(key)
            if isinstance(obj, list) and key.isdigit():
                index = int(key)
                return obj[index] if index < len(obj) else None
            return None

        return reduce(step, path.split("."), self.get_last_push())

    def events(self) -> Tuple[dict, ...]:
        return tuple(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Dict]:
        return iter(tuple(self._events))
