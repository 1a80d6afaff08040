import json
import threading
import uuid
import pytest
from structlog.testing import capture_logs
from storefront.domain import Cart, CartLineItem
from storefront.store import (
    CartStore,
    JsonFileStore,
    MemoryStore,
    visitor_path,
    QuotaExceededError,
    StoreError,
)


@pytest.fixture
def cart():
    return Cart(
        items=(
            CartLineItem(
                id="2",
                name="Shirt",
                category="Shirts",
                brand="Aurora",
                price=1299,
                image="s.jpg",
                qty=2,
            ),
            CartLineItem(
                id="1",
                name="Jacket",
                category="Jackets",
                brand="Aurora",
                price=2499,
                image="j.jpg",
                qty=1,
            ),
        )
    )


class BrokenStore(MemoryStore):
    """Хранилище, которое падает на чтение и/или запись"""

    def __init__(self, fail_read=False, fail_write=False):
        super().__init__()
        self.fail_read = fail_read
        self.fail_write = fail_write

    def get_item(self, key):
        if self.fail_read:
            raise StoreError("storage disabled")
        return super().get_item(key)

    def set_item(self, key, value):
        if self.fail_write:
            raise QuotaExceededError("quota exceeded")
        super().set_item(key, value)


def test_save_then_load_roundtrip(cart):
    store = CartStore(MemoryStore())
    assert store.save(cart) is True
    assert store.load() == cart


def test_load_then_save_is_idempotent(cart):
    backend = MemoryStore()
    store = CartStore(backend)
    store.save(cart)
    before = backend.get_item("cart")

    store.save(store.load())
    assert backend.get_item("cart") == before


def test_missing_key_gives_empty_cart():
    backend = MemoryStore()
    assert CartStore(backend).load() == Cart()
    assert backend.get_item("cart") is None


@pytest.mark.parametrize(
    "payload",
    [
        "{oops",
        '[{"id": "a", "qty": Infinity}]',
        '[{"id": "a", "qty": 1, "price": -Infinity}]',
        '[{"id": "a", "qty": NaN}]',
        '[{"id": "a", "qty": 1e400}]',
        "[" * 100000 + "]" * 100000,
    ],
    ids=["truncated", "inf-qty", "neg-inf-price", "nan-qty", "overflow", "deep-nesting"],
)
def test_corrupt_payload_resets_store(payload):
    """Битые данные - пустая корзина и перезапись "[]" без исключения"""
    backend = MemoryStore()
    backend.set_item("cart", payload)

    with capture_logs() as logs:
        loaded = CartStore(backend).load()

    assert loaded == Cart()
    assert json.loads(backend.get_item("cart")) == []
    assert any(log["log_level"] == "warning" for log in logs)


def test_unreadable_store_resets_without_raising():
    backend = BrokenStore(fail_read=True)
    assert CartStore(backend).load() == Cart()
    assert backend._data["cart"] == "[]"


def test_save_failure_is_logged_not_raised(cart):
    with capture_logs() as logs:
        assert CartStore(BrokenStore(fail_write=True)).save(cart) is False
    assert logs[0]["event"] == "Error saving cart to store"
    assert logs[0]["log_level"] == "error"


def test_memory_store_quota():
    backend = MemoryStore(quota=5)
    backend.set_item("k", "12345")
    with pytest.raises(QuotaExceededError):
        backend.set_item("other", "1")
    backend.set_item("k", "54321")
    assert backend.get_item("k") == "54321"


def test_custom_key(cart):
    backend = MemoryStore()
    CartStore(backend, key="basket").save(cart)
    assert backend.get_item("basket") is not None
    assert backend.get_item("cart") is None


def test_json_file_store_persists(tmp_path, cart):
    path = tmp_path / "nested" / "local_storage.json"
    CartStore(JsonFileStore(path)).save(cart)

    # новый экземпляр - как перезагрузка страницы
    assert CartStore(JsonFileStore(path)).load() == cart


def test_json_file_store_remove_item(tmp_path):
    store = JsonFileStore(tmp_path / "ls.json")
    store.set_item("a", "1")
    store.set_item("b", "2")
    store.remove_item("a")
    assert store.get_item("a") is None
    assert store.get_item("b") == "2"


def test_json_file_store_corrupt_file_raises_store_error(tmp_path):
    path = tmp_path / "ls.json"
    path.write_text("not json", encoding="utf-8")
    with pytest.raises(StoreError):
        JsonFileStore(path).get_item("cart")


def test_cart_store_recovers_from_corrupt_file(tmp_path):
    """Файл целиком битый: чтение и перезапись падают, load всё равно не бросает"""
    path = tmp_path / "ls.json"
    path.write_text("not json", encoding="utf-8")
    assert CartStore(JsonFileStore(path)).load() == Cart()


def test_json_file_store_leaves_no_temp_files(tmp_path):
    store = JsonFileStore(tmp_path / "ls.json")
    for i in range(5):
        store.set_item("cart", str(i))
    store.remove_item("cart")

    assert [p.name for p in tmp_path.iterdir()] == ["ls.json"]
    assert json.loads((tmp_path / "ls.json").read_text(encoding="utf-8")) == {}


def test_json_file_store_concurrent_writers_keep_every_key(tmp_path):
    """Параллельные set_item в один файл не теряют чужие ключи"""
    store = JsonFileStore(tmp_path / "ls.json")

    def write(n):
        for i in range(10):
            store.set_item(f"k{n}-{i}", str(i))

    threads = [threading.Thread(target=write, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for n in range(8):
        for i in range(10):
            assert store.get_item(f"k{n}-{i}") == str(i)


def test_visitors_get_separate_carts(tmp_path, cart):
    base = tmp_path / "local_storage.json"
    first, second = uuid.uuid4().hex, uuid.uuid4().hex

    CartStore(JsonFileStore(visitor_path(base, first))).save(cart)

    assert CartStore(JsonFileStore(visitor_path(base, second))).load() == Cart()
    assert CartStore(JsonFileStore(visitor_path(base, first))).load() == cart
    assert visitor_path(base, first).name == f"local_storage-{first}.json"


@pytest.mark.parametrize("visitor_id", ["", "../../etc/passwd", "ABC", "a" * 31])
def test_visitor_path_rejects_foreign_ids(tmp_path, visitor_id):
    with pytest.raises(StoreError):
        visitor_path(tmp_path / "local_storage.json", visitor_id)
