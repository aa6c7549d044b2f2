"""Tests for the retry policy."""

from __future__ import annotations

from secrets_store_rotator.policy import Action, Decision, decide


class TestDecide:
    """Test cases for retry decisions."""

    def test_success_forgets(self):
        """A successful reconcile forgets the key."""
        assert decide(failed=False, not_found=False, num_requeues=3) == Decision(Action.FORGET)

    def test_other_failure_uses_fixed_delay(self):
        """Generic failures are retried after the fixed delay."""
        decision = decide(failed=True, not_found=False, num_requeues=50)

        assert decision.action == Action.DELAY
        assert decision.delay == 10.0

    def test_not_found_is_rate_limited(self):
        """Not-found failures are rate limited within the budget."""
        for attempt in range(5):
            assert decide(failed=True, not_found=True, num_requeues=attempt).action == Action.RATE_LIMIT

    def test_not_found_budget_exhausted(self):
        """Not-found failures are dropped once the budget is spent."""
        decision = decide(failed=True, not_found=True, num_requeues=5)

        assert decision.action == Action.FORGET
        assert decision.budget_exhausted

    def test_custom_limits(self):
        """Budget and delay are configurable."""
        assert decide(True, True, 1, max_requeues=1).action == Action.FORGET
        assert decide(True, False, 0, requeue_delay=2.5).delay == 2.5
