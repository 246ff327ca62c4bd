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


@pytest.fixture()
def ledger():
    from checkout.services.fake_adapter import FakeOrderLedger

    return FakeOrderLedger()


@pytest.fixture()
def order_service(ledger):
    from checkout.services.fake_adapter import FakeOrderService

    return FakeOrderService(ledger)


@pytest.fixture()
def verification_service(ledger):
    from checkout.services.fake_adapter import FakeVerificationService

    return FakeVerificationService(ledger)


@pytest.fixture()
def widget(ledger):
    from checkout.widget.fake_adapter import FakeCheckoutWidget

    return FakeCheckoutWidget(ledger, settle_status="PAID")


@pytest.fixture()
def widget_handle(widget):
    from checkout.widget.handle import CheckoutWidgetHandle

    return CheckoutWidgetHandle(widget)


@pytest.fixture()
def valid_form():
    return {
        "amount": "500",
        "customer_name": "Asha Rao",
        "customer_email": "asha@example.com",
        "customer_phone": "9876543210",
        "note": "Consultation fee",
    }
