import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def catalog():
    """A fresh in-memory catalog for every test."""
    from checkout.catalog import reset_catalog, set_catalog
    from checkout.catalog.memory_adapter import InMemoryCatalog

    catalog = InMemoryCatalog()
    set_catalog(catalog)
    yield catalog
    reset_catalog()


@pytest.fixture(autouse=True)
def gateway():
    """A fresh fake payment gateway for every test."""
    from checkout.gateway import reset_gateway, set_gateway
    from checkout.gateway.fake_adapter import FakeGateway

    gateway = FakeGateway()
    set_gateway(gateway)
    yield gateway
    reset_gateway()


@pytest.fixture(autouse=True)
def feed():
    """A fresh status notice feed for every test."""
    from checkout.notices import reset_feed, set_feed
    from checkout.notices.memory_feed import InMemoryNoticeFeed
    from checkout.order.locking import reset_locks

    feed = InMemoryNoticeFeed()
    set_feed(feed)
    yield feed
    reset_feed()
    reset_locks()


@pytest.fixture()
def shipping_address():
    return {
        "full_name": "Ada Buyer",
        "street": "1 Market St",
        "city": "Springfield",
        "state": "IL",
        "postal_code": "62701",
        "country": "US",
    }
