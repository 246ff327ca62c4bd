import asyncio

from checkout.lifecycle.controller import resume_from_callback
from checkout.lifecycle.polling import poll_until_settled
from checkout.lifecycle.state import UIStatus


def _pending_controller(ledger, verification_service):
    ledger.put_order({"order_id": "order_1", "order_amount": 500, "order_status": "ACTIVE"})
    controller = resume_from_callback({"order_id": "order_1"}, verification_service=verification_service)
    asyncio.run(controller.resume())
    assert controller.state.ui_status is UIStatus.PENDING
    return controller


class _Sleeper:
    def __init__(self, on_sleep=None):
        self.delays = []
        self.on_sleep = on_sleep

    async def __call__(self, delay):
        self.delays.append(delay)
        if self.on_sleep is not None:
            self.on_sleep(len(self.delays))


class TestPollUntilSettled:
    def test_stops_once_settled(self, ledger, verification_service):
        controller = _pending_controller(ledger, verification_service)

        def settle(count):
            if count == 2:
                ledger.set_status("order_1", "PAID")

        sleeper = _Sleeper(settle)
        state = asyncio.run(poll_until_settled(controller, attempts=5, interval=2.0, backoff=1.5, sleep=sleeper))

        assert state.ui_status is UIStatus.SUCCEEDED
        assert sleeper.delays == [2.0, 3.0]

    def test_gives_up_after_attempts(self, ledger, verification_service):
        controller = _pending_controller(ledger, verification_service)
        sleeper = _Sleeper()

        state = asyncio.run(poll_until_settled(controller, attempts=3, interval=1.0, backoff=2.0, sleep=sleeper))

        assert state.ui_status is UIStatus.PENDING
        assert sleeper.delays == [1.0, 2.0, 4.0]

    def test_interval_is_capped(self, ledger, verification_service):
        controller = _pending_controller(ledger, verification_service)
        sleeper = _Sleeper()

        asyncio.run(
            poll_until_settled(controller, attempts=4, interval=10.0, backoff=3.0, max_interval=20.0, sleep=sleeper)
        )

        assert sleeper.delays == [10.0, 20.0, 20.0, 20.0]

    def test_stops_when_closed(self, ledger, verification_service):
        controller = _pending_controller(ledger, verification_service)
        sleeper = _Sleeper(lambda count: controller.close())

        state = asyncio.run(poll_until_settled(controller, attempts=5, sleep=sleeper))

        assert state.ui_status is UIStatus.PENDING
        assert sleeper.delays == [2.0]

    def test_settled_controller_not_polled(self, ledger, verification_service):
        ledger.put_order({"order_id": "order_2", "order_amount": 500, "order_status": "PAID"})
        controller = resume_from_callback({"order_id": "order_2"}, verification_service=verification_service)
        asyncio.run(controller.resume())
        sleeper = _Sleeper()

        state = asyncio.run(poll_until_settled(controller, sleep=sleeper))

        assert state.ui_status is UIStatus.SUCCEEDED
        assert sleeper.delays == []
