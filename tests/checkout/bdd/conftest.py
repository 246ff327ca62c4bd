"""Shared BDD fixtures and step definitions for the Checkout domain."""

import asyncio

import pytest
from checkout.lifecycle.controller import resume_from_callback, start_checkout
from checkout.widget.handle import CheckoutWidgetHandle
from checkout.widget.port import RedirectTarget
from pytest_bdd import given, parsers, then, when

RETURN_URL = "https://shop.test/payment/callback"


@pytest.fixture()
def flow(ledger, order_service, verification_service, widget):
    """Mutable scenario context: collaborators plus the active controller."""
    return {
        "ledger": ledger,
        "order_service": order_service,
        "verification_service": verification_service,
        "widget": widget,
        "redirect_target": RedirectTarget.MODAL,
        "controller": None,
    }


def _submit(flow, form):
    controller = start_checkout(
        order_service=flow["order_service"],
        verification_service=flow["verification_service"],
        widget=CheckoutWidgetHandle(flow["widget"]),
        return_url=RETURN_URL,
        redirect_target=flow["redirect_target"],
    )
    flow["controller"] = controller
    asyncio.run(controller.submit(form))


def _valid_form(**overrides):
    form = {
        "amount": "500",
        "customer_name": "Asha Rao",
        "customer_email": "asha@example.com",
        "customer_phone": "9876543210",
    }
    form.update(overrides)
    return form


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the order service refuses orders with "{message}"'))
def _order_service_refuses(flow, message):
    flow["order_service"].configure(should_succeed=False, failure_message=message)


@given(parsers.cfparse('the processor settles orders as "{status}"'))
def _processor_settles(flow, status):
    flow["widget"].settle_status = status


@given("checkout hands off to the hosted page")
def _hosted_hand_off(flow):
    flow["redirect_target"] = RedirectTarget.SELF


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the customer submits a valid payment")
def _submit_valid(flow):
    _submit(flow, _valid_form())


@when(parsers.cfparse('the customer submits a payment with phone "{phone}"'))
def _submit_with_phone(flow, phone):
    _submit(flow, _valid_form(customer_phone=phone))


@when("the customer returns to the callback for that order")
def _return_to_callback(flow):
    order_id = flow["controller"].order_id
    flow["controller"].close()
    controller = resume_from_callback(
        f"{RETURN_URL}?order_id={order_id}", verification_service=flow["verification_service"]
    )
    flow["controller"] = controller
    asyncio.run(controller.resume())


@when(parsers.cfparse('the customer lands on "{url}"'))
def _land_on(flow, url):
    controller = resume_from_callback(url, verification_service=flow["verification_service"])
    flow["controller"] = controller
    asyncio.run(controller.resume())


@when(parsers.cfparse('the backend marks the order "{status}"'))
def _backend_marks(flow, status):
    flow["ledger"].set_status(flow["controller"].order_id, status)


@when("the customer refreshes the status")
def _refresh_status(flow):
    asyncio.run(flow["controller"].retry())


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the payment status is "{ui_status}"'))
def _payment_status_is(flow, ui_status):
    assert flow["controller"].state.ui_status.value == ui_status


@then(parsers.cfparse('the customer sees "{message}"'))
def _customer_sees(flow, message):
    assert flow["controller"].state.message == message


@then(parsers.cfparse("{count:d} payment attempt is shown"))
def _attempts_shown(flow, count):
    assert len(flow["controller"].state.attempts) == count


@then("the checkout widget was not opened")
def _widget_not_opened(flow):
    assert flow["widget"].calls == []


@then("no verification was attempted")
def _no_verification(flow):
    assert flow["verification_service"].calls == []


@then("no order was created")
def _no_order(flow):
    assert flow["order_service"].calls == []
