import pytest
from sqlalchemy import func, select

from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.discount import DiscountModel
from storefront.domain.errors import ProductNotFound
from storefront.domain.schemas import DiscountCreate, ProductCreate, ProductUpdate
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.promotion_service import PromotionService


@pytest.fixture
def catalog(db):
    return CatalogService(db)


@pytest.fixture
def shelf(make_product):
    return [
        make_product(name="Mechanical keyboard", price=45000, stock=4, category="perifericos", position=2),
        make_product(name="Gaming mouse", price=15000, stock=0, category="perifericos", position=1),
        make_product(name="USB-C cable", price=3000, stock=40, category="cables", position=3),
        make_product(name="HDMI cable", price=5000, stock=12, category="cables", position=4, sales_count=9),
        make_product(name="Monitor 27", price=180000, stock=2, category="monitores", position=5, sales_count=3),
    ]


def test_pagination_envelope(catalog, shelf):
    page = catalog.list_products(page=1, limit=2)

    assert [p.name for p in page["data"]] == ["Gaming mouse", "Mechanical keyboard"]
    assert page["pagination"] == {
        "page": 1,
        "limit": 2,
        "total": 5,
        "total_pages": 3,
        "has_more": True,
    }

    last = catalog.list_products(page=3, limit=2)
    assert [p.name for p in last["data"]] == ["Monitor 27"]
    assert last["pagination"]["has_more"] is False


def test_empty_catalog_has_no_pages(catalog):
    page = catalog.list_products()
    assert page["data"] == []
    assert page["pagination"]["total_pages"] == 0
    assert page["pagination"]["has_more"] is False


def test_search_by_text_and_filters(catalog, shelf):
    assert [p.name for p in catalog.search(q="CABLE")["data"]] == ["USB-C cable", "HDMI cable"]
    assert [p.name for p in catalog.search(q="cable", max_price=4000)["data"]] == ["USB-C cable"]
    assert [p.name for p in catalog.search(category="perifericos", in_stock=True)["data"]] == [
        "Mechanical keyboard"
    ]
    assert catalog.search(category="all")["pagination"]["total"] == 5
    assert catalog.search(min_price=100000)["pagination"]["total"] == 1


def test_categories_are_distinct_and_sorted(catalog, shelf, make_product):
    make_product(name="No category")
    assert catalog.categories() == ["cables", "monitores", "perifericos"]


def test_low_stock_and_top_selling(catalog, shelf):
    assert [p.name for p in catalog.low_stock(threshold=4)] == [
        "Gaming mouse",
        "Monitor 27",
        "Mechanical keyboard",
    ]
    assert [p.name for p in catalog.top_selling(limit=2)] == ["HDMI cable", "Monitor 27"]


def test_related_shares_category(catalog, shelf):
    keyboard = shelf[0]
    assert [p.name for p in catalog.related(keyboard.id)] == ["Gaming mouse"]

    with pytest.raises(ProductNotFound):
        catalog.related(9999)


def test_related_without_category(catalog, make_product):
    loner = make_product(name="Loner")
    assert catalog.related(loner.id) == []


def test_create_and_update(catalog):
    created = catalog.create_product(
        ProductCreate(name="Webcam", price=25000, stock=3, category="video", images=["a.jpg"])
    )
    assert created.id is not None
    assert created.sales_count == 0

    updated = catalog.update_product(created.id, ProductUpdate(price=22000))
    assert updated.price == 22000
    assert updated.name == "Webcam"

    with pytest.raises(ProductNotFound):
        catalog.update_product(9999, ProductUpdate(price=1))


def test_reorder_reports_each_pair(catalog, shelf):
    mouse, cable = shelf[1], shelf[2]

    results = catalog.reorder_positions(
        [{"id": cable.id, "position": 0}, {"id": 9999, "position": 1}, {"id": mouse.id, "position": 7}]
    )

    assert results == [
        {"id": cable.id, "updated": True},
        {"id": 9999, "updated": False},
        {"id": mouse.id, "updated": True},
    ]
    assert catalog.list_products(limit=1)["data"][0].name == "USB-C cable"


def test_delete_cascades_to_lines_and_discounts(db, catalog, lock_service, make_product):
    product = make_product()
    carts = CartService(db, lock_service)
    cart = carts.create_cart()
    carts.add_item(cart.id, product.id, 1)
    PromotionService(db).create_discount(DiscountCreate(product_id=product.id, percentage=10, code="X10"))

    assert catalog.delete_product(product.id) == 1
    assert catalog.delete_product(product.id) == 0

    db.expire_all()
    assert db.execute(select(func.count()).select_from(CartItemModel)).scalar_one() == 0
    assert db.execute(select(func.count()).select_from(DiscountModel)).scalar_one() == 0
