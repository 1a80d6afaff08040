import sys
import os
import uuid
import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from storefront.catalog import PRODUCTS, categories, find_product
from storefront.config import load_settings
from storefront.counter import Badge
from storefront.datalayer import DataLayer
from storefront.events import EventEmitter
from storefront.logging_config import configure_logging
from storefront.mutator import CartMutator
from storefront.pages import classify_page, page_name
from storefront.render import describe_line, format_price, render_cart
from storefront.report import cart_funnel, event_counts, orders_summary
from storefront.store import VISITOR_ID, CartStore, JsonFileStore, visitor_path


class SessionStateStore:
    """sessionStorage поверх st.session_state"""

    def __init__(self, prefix: str = "session:"):
        self.prefix = prefix

    def get_item(self, key):
        return st.session_state.get(self.prefix + key)

    def set_item(self, key, value):
        st.session_state[self.prefix + key] = str(value)

    def remove_item(self, key):
        st.session_state.pop(self.prefix + key, None)


# ============ Ресурсы ============
@st.cache_resource
def get_settings():
    settings = load_settings()
    configure_logging(settings.log_level)
    return settings


@st.cache_resource
def get_local_storage(path: str):
    return JsonFileStore(path)


settings = get_settings()

st.set_page_config(
    page_title="Aurora Storefront",
    page_icon="🛍️",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ============ Инициализация состояния ============
if "page" not in st.session_state:
    st.session_state.page = "Home"
if "product_id" not in st.session_state:
    st.session_state.product_id = PRODUCTS[0].id
if "data_layer" not in st.session_state:
    st.session_state.data_layer = DataLayer()
if "badge" not in st.session_state:
    st.session_state.badge = Badge()
if "notices" not in st.session_state:
    st.session_state.notices = []


def current_location() -> str:
    page = st.session_state.page
    if page == "PDP":
        return f"pdp.html?id={st.session_state.product_id}"
    return "index.html" if page == "Home" else f"{page.lower()}.html"


def navigate(url: str) -> None:
    st.session_state.page = page_name(url)


def notify(message: str) -> None:
    st.session_state.notices.append(message)


def current_visitor() -> str:
    """
    Id посетителя живёт в URL (?visitor=...), поэтому переживает перезагрузку
    вкладки, как localStorage; у каждого посетителя свой файл корзины
    """
    if "visitor" not in st.session_state:
        visitor = st.query_params.get("visitor", "")
        if not VISITOR_ID.fullmatch(visitor):
            visitor = uuid.uuid4().hex
            st.query_params["visitor"] = visitor
        st.session_state.visitor = visitor
    return st.session_state.visitor


def get_mutator() -> CartMutator:
    """Один мутатор на сессию; корзина гидратируется при первом рендере"""
    if "mutator" not in st.session_state:
        mutator = CartMutator(
            store=CartStore(
                get_local_storage(
                    str(visitor_path(settings.store_path, current_visitor()))
                ),
                settings.cart_key,
            ),
            emitter=EventEmitter(
                st.session_state.data_layer,
                page=lambda: classify_page(current_location()),
            ),
            session=SessionStateStore(),
            badges=lambda: (st.session_state.badge,),
            notify=notify,
            navigate=navigate,
            settings=settings,
        )
        mutator.load()
        st.session_state.mutator = mutator
    return st.session_state.mutator


mutator = get_mutator()


def tracked_button(label: str, key: str, **kwargs) -> bool:
    """st.button, который пушит click в data layer"""
    clicked = st.button(label, key=key, **kwargs)
    if clicked:
        mutator.emitter.click({"tagName": "BUTTON", "textContent": label, "id": key})
    return clicked


def go(page: str, **state) -> None:
    st.session_state.update(page=page, **state)
    st.rerun()


# ============ SIDEBAR ============
with st.sidebar:
    st.header("🛍️ Aurora")
    for target in ("Home", "PLP", "Cart"):
        label = target
        if target == "Cart" and st.session_state.badge.visible:
            label = f"Cart ({st.session_state.badge.text})"
        if tracked_button(label, key=f"nav_{target}", use_container_width=True):
            go(target)

    st.divider()
    with st.expander("📡 Data layer"):
        layer = st.session_state.data_layer
        st.caption(f"Событий: {len(layer)}")
        st.json(layer.get_last_push() or {})
        st.write(event_counts(layer))


for message in st.session_state.notices:
    st.toast(message)
st.session_state.notices = []

page = st.session_state.page
entered = st.session_state.get("last_page") != page
st.session_state.last_page = page


def product_card(product, key_prefix: str) -> None:
    st.image(product.image, use_container_width=True)
    st.markdown(f"**{product.name}**")
    st.caption(f"{product.category} · {product.brand}")
    st.write(format_price(product.price))
    cols = st.columns(2)
    with cols[0]:
        if tracked_button("Details", key=f"{key_prefix}_pdp_{product.id}"):
            go("PDP", product_id=product.id)
    with cols[1]:
        if tracked_button("Add to cart", key=f"{key_prefix}_add_{product.id}"):
            mutator.add_item(product)
            st.rerun()


# ============ PAGE: HOME ============
if page == "Home":
    st.title("Aurora Storefront")
    st.subheader("New arrivals")
    cols = st.columns(3)
    for idx, product in enumerate(PRODUCTS[:3]):
        with cols[idx]:
            product_card(product, "home")


# ============ PAGE: PLP ============
elif page == "PLP":
    st.header("All products")
    selected = st.selectbox("Category", ["All"] + list(categories(PRODUCTS)))
    shown = tuple(p for p in PRODUCTS if selected == "All" or p.category == selected)

    cols = st.columns(3)
    for idx, product in enumerate(shown):
        with cols[idx % 3]:
            product_card(product, "plp")


# ============ PAGE: PDP ============
elif page == "PDP":
    found = find_product(PRODUCTS, st.session_state.product_id)
    if found.is_none():
        st.warning("Product not found")
    else:
        product = found.get_or_else(None)
        cols = st.columns([2, 3])
        with cols[0]:
            st.image(product.image, use_container_width=True)
        with cols[1]:
            st.header(product.name)
            st.caption(f"{product.category} · {product.brand}")
            st.subheader(format_price(product.price))
            if tracked_button(
                "Add to cart", key=f"pdp_add_{product.id}", type="primary"
            ):
                mutator.add_item(product)
                st.rerun()


# ============ PAGE: CART ============
elif page == "Cart":
    st.header("🛒 Your cart")

    if entered:
        view = mutator.view_cart()
    else:
        view = render_cart(mutator.cart)

    if view.is_empty:
        st.info("Your cart is empty.")
    else:
        for line in view.lines:
            cols = st.columns([1, 4, 2, 1])
            with cols[0]:
                st.image(line.image, width=80)
            with cols[1]:
                st.markdown(f"**{line.name}**")
                st.caption(f"Category: {line.category}")
                st.write(describe_line(line))
            with cols[2]:
                minus, qty, plus = st.columns(3)
                if minus.button("-", key=f"dec_{line.id}"):
                    mutator.update_quantity(line.id, -1)
                    st.rerun()
                qty.write(line.qty)
                if plus.button("+", key=f"inc_{line.id}"):
                    mutator.update_quantity(line.id, 1)
                    st.rerun()
            with cols[3]:
                if tracked_button("Remove", key=f"remove_{line.id}"):
                    mutator.remove_item(line.id)
                    st.rerun()

        st.divider()
        st.markdown(f"### Total: **{format_price(view.total)}**")

        if view.checkout_visible and tracked_button(
            "Proceed to checkout", key="to_checkout", type="primary"
        ):
            go("Checkout")


# ============ PAGE: CHECKOUT ============
elif page == "Checkout":
    st.header("Checkout")
    st.write(f"Items: {mutator.cart_item_count()}")
    st.markdown(f"### Total: **{format_price(mutator.cart_total())}**")

    if tracked_button("Place order", key="place_order", type="primary"):
        mutator.checkout()
        st.rerun()


# ============ PAGE: THANK YOU ============
elif page == "ThankYou":
    st.header("🎉 Thank you for your order!")
    order_id = mutator.confirmed_order_id()
    if order_id.is_some():
        st.success(f"Order ID: **{order_id.get_or_else('')}**")

    summary = orders_summary(st.session_state.data_layer)
    funnel = cart_funnel(st.session_state.data_layer)
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Orders this session", summary["orders"])
    with col2:
        st.metric("Revenue", format_price(summary["revenue"]))
    with col3:
        st.metric("Add → purchase", f"{funnel['conversion_rate']:.1f}%")

    if tracked_button("Continue shopping", key="continue"):
        go("Home")
