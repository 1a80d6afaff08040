import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import random
import pytest
from storefront.datalayer import DataLayer
from storefront.domain import Product, PageInfo
from storefront.events import EventEmitter
from storefront.mutator import CartMutator
from storefront.store import CartStore, MemoryStore

FIXED_TS = "2025-11-25T12:00:00.000Z"


@pytest.fixture
def product_a():
    return Product(id="a", name="Item A", category="Shirts", brand="Aurora", price=100, image="a.jpg")


@pytest.fixture
def product_b():
    return Product(id="b", name="Item B", category="Jeans", brand="Aurora", price=500, image="b.jpg")


@pytest.fixture
def cart_page():
    return PageInfo(page_name="Cart", page_type="cart", url="cart.html")


@pytest.fixture
def backend():
    return MemoryStore()


@pytest.fixture
def data_layer():
    return DataLayer()


@pytest.fixture
def calls():
    """Журнал вызовов коллабораторов мутатора"""
    return {"notify": [], "navigate": [], "rendered": []}


@pytest.fixture
def mutator(backend, data_layer, cart_page, calls):
    return CartMutator(
        store=CartStore(backend),
        emitter=EventEmitter(data_layer, page=lambda: cart_page, clock=lambda: FIXED_TS),
        session=MemoryStore(),
        on_change=calls["rendered"].append,
        notify=calls["notify"].append,
        navigate=calls["navigate"].append,
        rng=random.Random(42),
    )
