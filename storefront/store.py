import json
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

import structlog

from .domain import Cart
from .transforms import deserialize_cart, serialize_cart

logger = structlog.get_logger(__name__)


class StoreError(Exception):
    """Хранилище недоступно или не приняло запись"""


class QuotaExceededError(StoreError):
    pass


class KeyValueStore(Protocol):
    """Поверхность localStorage / sessionStorage"""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """
    Хранилище в памяти процесса.
    quota - лимит суммарной длины значений в символах (None = без лимита)
    """

    def __init__(self, quota: Optional[int] = None):
        self._data: Dict[str, str] = {}
        self.quota = quota

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota is not None:
            used = sum(len(v) for k, v in self._data.items() if k != key)
            if used + len(value) > self.quota:
                raise QuotaExceededError(
                    f"Setting '{key}' exceeds quota of {self.quota}"
                )
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """
    Хранилище в JSON-файле: переживает перезапуск процесса, как localStorage.
    Запись атомарная (временный файл + os.replace), read-modify-write под замком
    """

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"{self.path} does not hold a key-value object")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        tmp = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp = Path(f.name)
                json.dump(data, f)
            os.replace(tmp, self.path)
        except OSError as e:
            if tmp is not None:
                tmp.unlink(missing_ok=True)
            raise StoreError(f"Cannot write {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return None if value is None else str(value)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._write_all({**self._read_all(), key: str(value)})

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if key in data:
                self._write_all({k: v for k, v in data.items() if k != key})


VISITOR_ID = re.compile(r"[0-9a-f]{32}")


def visitor_path(path, visitor_id: str) -> Path:
    """
    Отдельный файл на посетителя:
    .storefront/local_storage.json → .storefront/local_storage-<uuid4 hex>.json
    """
    if not VISITOR_ID.fullmatch(visitor_id or ""):
        raise StoreError(f"Invalid visitor id: {visitor_id!r}")
    path = Path(path)
    return path.with_name(f"{path.stem}-{visitor_id}{path.suffix}")


# ============ Persistent Store Adapter ============


class CartStore:
    """Чтение/запись корзины как JSON-текста под фиксированным ключом"""

    def __init__(self, backend: KeyValueStore, key: str = "cart"):
        self.backend = backend
        self.key = key

    def load(self) -> Cart:
        """
        Никогда не бросает исключение.
        Нет ключа - пустая корзина; битые данные - сброс и перезапись "[]"
        """
        try:
            text = self.backend.get_item(self.key)
        except StoreError as e:
            logger.warning("Error loading cart from store", key=self.key, error=str(e))
            return self._reset()

        if text is None:
            return Cart()

        result = deserialize_cart(text)
        if result.is_left:
            logger.warning(
                "Error loading cart from store",
                key=self.key,
                error=result.value["error"],
            )
            return self._reset()
        return result.get_or_else(Cart())

    def save(self, cart: Cart) -> bool:
        """Пишет корзину; при ошибке логирует и возвращает False"""
        try:
            self.backend.set_item(self.key, serialize_cart(cart))
        except StoreError as e:
            logger.error("Error saving cart to store", key=self.key, error=str(e))
            return False
        return True

    def _reset(self) -> Cart:
        empty = Cart()
        self.save(empty)
        return empty
