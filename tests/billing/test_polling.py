"""Bounded entitlement polling."""
import unittest
from unittest.mock import MagicMock

from app.services.billing.models import BillingStatus
from app.services.billing.polling import wait_for_entitlement

FREE = BillingStatus(is_pro=False, subscription_status=None)
PRO = BillingStatus(is_pro=True, subscription_status="active")


class TestWaitForEntitlement(unittest.TestCase):
    def test_active_immediately(self):
        sleep = MagicMock()
        poll = wait_for_entitlement(lambda: PRO, attempts=10, interval_seconds=2.0, sleep=sleep)
        self.assertEqual(poll.state, "active")
        self.assertEqual(poll.attempts, 1)
        sleep.assert_not_called()

    def test_becomes_active_on_third_attempt(self):
        fetch = MagicMock(side_effect=[FREE, FREE, PRO])
        sleep = MagicMock()
        poll = wait_for_entitlement(fetch, attempts=10, interval_seconds=2.0, sleep=sleep)
        self.assertEqual(poll.state, "active")
        self.assertEqual(poll.attempts, 3)
        self.assertEqual(fetch.call_count, 3)
        self.assertEqual(sleep.call_count, 2)
        sleep.assert_called_with(2.0)

    def test_gives_up_as_processing(self):
        fetch = MagicMock(return_value=FREE)
        sleep = MagicMock()
        poll = wait_for_entitlement(fetch, attempts=10, interval_seconds=2.0, sleep=sleep)
        self.assertEqual(poll.state, "processing")
        self.assertEqual(poll.attempts, 10)
        self.assertEqual(fetch.call_count, 10)
        self.assertEqual(sleep.call_count, 9)
        self.assertFalse(poll.status.is_pro)

    def test_defaults_from_settings(self):
        fetch = MagicMock(return_value=FREE)
        sleep = MagicMock()
        poll = wait_for_entitlement(fetch, sleep=sleep)
        self.assertEqual(poll.attempts, 10)
        sleep.assert_called_with(2.0)

    def test_at_least_one_attempt(self):
        fetch = MagicMock(return_value=FREE)
        poll = wait_for_entitlement(fetch, attempts=0, interval_seconds=0, sleep=MagicMock())
        self.assertEqual(fetch.call_count, 1)
        self.assertEqual(poll.state, "processing")


if __name__ == "__main__":
    unittest.main()
