"""
Unit tests for the cooperative scheduler and the feedback channel.
"""

import pytest

from adaptest.clock import CooperativeScheduler, ManualClock
from adaptest.feedback import FeedbackChannel, MessageKind


class TestManualClock:
    def test_advance(self):
        clock = ManualClock()
        assert clock() == 0.0
        clock.advance(1.5)
        assert clock() == 1.5

    def test_cannot_go_backwards(self):
        with pytest.raises(ValueError):
            ManualClock().advance(-1)


class TestCooperativeScheduler:
    def test_call_later_fires_when_due(self, clock, scheduler):
        fired = []
        scheduler.call_later(2.0, lambda: fired.append("a"))

        clock.advance(1.0)
        assert scheduler.run_pending() == 0
        clock.advance(1.0)
        assert scheduler.run_pending() == 1
        assert fired == ["a"]

    def test_due_order(self, clock, scheduler):
        fired = []
        scheduler.call_later(2.0, lambda: fired.append("late"))
        scheduler.call_later(1.0, lambda: fired.append("early"))
        scheduler.call_later(1.0, lambda: fired.append("early-2"))

        clock.advance(5)
        scheduler.run_pending()

        assert fired == ["early", "early-2", "late"]

    def test_cancelled_timer_does_not_fire(self, clock, scheduler):
        fired = []
        handle = scheduler.call_later(1.0, lambda: fired.append("x"))
        handle.cancel()
        handle.cancel()

        clock.advance(2)
        scheduler.run_pending()

        assert fired == []
        assert scheduler.pending() == []

    def test_call_every_catches_up(self, clock, scheduler):
        ticks = []
        scheduler.call_every(1.0, lambda: ticks.append(clock()))

        clock.advance(3.0)
        scheduler.run_pending()

        assert len(ticks) == 3
        assert len(scheduler.pending()) == 1

    def test_call_every_rejects_non_positive_interval(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.call_every(0, lambda: None)

    def test_callback_may_schedule_more(self, clock, scheduler):
        fired = []
        scheduler.call_later(1.0, lambda: scheduler.call_later(0, lambda: fired.append("chained")))

        clock.advance(1.0)
        scheduler.run_pending()

        assert fired == ["chained"]

    def test_defaults_to_monotonic_clock(self):
        assert CooperativeScheduler().now() > 0


class TestFeedbackChannel:
    @pytest.fixture
    def channel(self, scheduler):
        return FeedbackChannel(scheduler, dwell_seconds=3.0)

    def test_show_sets_current(self, channel):
        message = channel.show(MessageKind.REWARD, "nice")

        assert channel.current is message
        assert message.shown_at == 100.0
        assert channel.history == [message]

    def test_new_message_restarts_dwell(self, channel, clock, scheduler):
        channel.show(MessageKind.REWARD, "first")
        clock.advance(2.0)
        channel.show(MessageKind.KNOWLEDGE, "second")

        clock.advance(2.0)
        scheduler.run_pending()
        assert channel.current.text == "second"

        clock.advance(1.0)
        scheduler.run_pending()
        assert channel.current is None

    def test_show_later(self, channel, clock, scheduler):
        channel.show_later(1.0, MessageKind.KNOWLEDGE, "later")
        assert channel.current is None
        assert [m.text for m in channel.pending] == ["later"]

        clock.advance(1.0)
        scheduler.run_pending()

        assert channel.current.text == "later"
        assert channel.pending == []

    def test_show_does_not_cancel_delayed(self, channel, clock, scheduler):
        channel.show_later(1.0, MessageKind.KNOWLEDGE, "later")
        channel.show(MessageKind.REWARD, "now")

        clock.advance(1.0)
        scheduler.run_pending()

        assert channel.current.text == "later"

    def test_close_cancels_everything(self, channel, clock, scheduler):
        channel.show(MessageKind.REWARD, "now")
        channel.show_later(1.0, MessageKind.KNOWLEDGE, "later")

        channel.close()
        clock.advance(5)
        scheduler.run_pending()

        assert channel.current is None
        assert scheduler.pending() == []
        assert channel.show(MessageKind.REWARD, "after close") is None

