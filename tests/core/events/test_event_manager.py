"""
Unit tests for the Event Manager system.

Tests the publisher-subscriber bus the combat systems use to talk to the
log manager, damage listeners and presentation adapters.
"""

from unittest.mock import Mock

import pytest

from creature_combat.core.events import (
    EventManager, EventPriority, EventType, LogMessage, QueuedEvent, TurnEnded, TurnStarted,
)
from creature_combat.game.managers import LogLevel


def make_turn_event(turn: int = 1) -> TurnStarted:
    return TurnStarted(turn=turn, combatant=Mock())


class TestEvents:
    """Test event dataclasses."""

    def test_event_type_is_set(self):
        """Test that each event fills in its own type."""
        assert make_turn_event().event_type == EventType.TURN_STARTED
        assert TurnEnded(turn=1, combatant=Mock()).event_type == EventType.TURN_ENDED

    def test_events_are_frozen(self):
        """Test that events cannot be modified after creation."""
        event = make_turn_event()
        with pytest.raises(AttributeError):
            event.turn = 5
        assert event.turn == 1


class TestQueuedEvent:
    """Test QueuedEvent ordering."""

    def test_ordering_by_priority(self):
        """Test that lower priority values sort first."""
        critical = QueuedEvent(make_turn_event(), EventPriority.CRITICAL, sequence=5)
        low = QueuedEvent(make_turn_event(), EventPriority.LOW, sequence=1)
        assert critical < low

    def test_ordering_by_sequence(self):
        """Test that equal priorities keep publish order."""
        first = QueuedEvent(make_turn_event(), EventPriority.NORMAL, sequence=1)
        second = QueuedEvent(make_turn_event(), EventPriority.NORMAL, sequence=2)
        assert first < second
        assert not second < first


class TestEventManager:
    """Test EventManager functionality."""

    def test_publish_queues_until_processed(self, event_manager):
        """Test that published events wait for process_events."""
        subscriber = Mock()
        event_manager.subscribe(EventType.TURN_STARTED, subscriber)

        event = make_turn_event()
        event_manager.publish(event, source="test")
        subscriber.assert_not_called()
        assert event_manager.has_queued_events()

        assert event_manager.process_events() == 1
        subscriber.assert_called_once_with(event)
        assert not event_manager.has_queued_events()

    def test_publish_immediate_delivers_synchronously(self, event_manager):
        """Test that immediate events reach subscribers before publish returns."""
        subscriber = Mock()
        event_manager.subscribe(EventType.TURN_STARTED, subscriber)

        event_manager.publish_immediate(make_turn_event(), source="test")

        subscriber.assert_called_once()
        assert not event_manager.has_queued_events()

    def test_priority_order(self, event_manager):
        """Test that higher priority events are delivered first."""
        received = []
        event_manager.subscribe(EventType.TURN_STARTED, lambda e: received.append(e.turn))

        event_manager.publish(make_turn_event(1), EventPriority.LOW)
        event_manager.publish(make_turn_event(2), EventPriority.HIGH)
        event_manager.publish(make_turn_event(3), EventPriority.NORMAL)
        event_manager.process_events()

        assert received == [2, 3, 1]

    def test_events_published_during_processing(self, event_manager):
        """Test that events raised by subscribers are delivered in the same call."""
        received = []

        def chain(event):
            received.append(event.event_type)
            event_manager.publish(TurnEnded(turn=event.turn, combatant=event.combatant))

        event_manager.subscribe(EventType.TURN_STARTED, chain)
        event_manager.subscribe(EventType.TURN_ENDED, lambda e: received.append(e.event_type))
        event_manager.publish(make_turn_event())

        assert event_manager.process_events() == 2
        assert received == [EventType.TURN_STARTED, EventType.TURN_ENDED]

    def test_max_events(self, event_manager):
        """Test partial processing keeps the rest queued."""
        for turn in range(3):
            event_manager.publish(make_turn_event(turn))

        assert event_manager.process_events(max_events=2) == 2
        assert event_manager.has_queued_events()
        assert event_manager.process_events() == 1

    def test_subscriber_errors_are_isolated(self, event_manager):
        """Test that one failing subscriber does not stop the others."""
        failing = Mock(side_effect=RuntimeError("boom"))
        healthy = Mock()
        event_manager.subscribe(EventType.TURN_STARTED, failing)
        event_manager.subscribe(EventType.TURN_STARTED, healthy)

        event_manager.publish(make_turn_event())
        event_manager.process_events()

        healthy.assert_called_once()
        assert event_manager.get_statistics()["subscriber_errors"] == 1

    def test_failing_subscriber_is_named(self):
        """Test that the debug trace names the subscriber that raised."""
        lines = []
        manager = EventManager(enable_debug_logging=True)
        manager.set_debug_callback(lines.append)
        manager.subscribe(EventType.TURN_STARTED, Mock(side_effect=KeyError("x")),
                          subscriber_name="ability_trigger")

        manager.publish(make_turn_event())
        manager.process_events()

        assert any("Error in subscriber ability_trigger handling TurnStarted" in line
                   for line in lines)

    def test_subscription_record(self, event_manager):
        """Test the record returned by subscribe and the per-type counts."""
        subscription = event_manager.subscribe(EventType.TURN_ENDED, Mock(), subscriber_name="log")
        event_manager.subscribe(EventType.TURN_STARTED, Mock())

        assert subscription.name == "log"
        assert event_manager.subscriber_count(EventType.TURN_ENDED) == 1
        assert event_manager.subscriber_count() == 2

    def test_unsubscribe(self, event_manager):
        """Test removing a subscriber."""
        subscriber = Mock()
        event_manager.subscribe(EventType.TURN_STARTED, subscriber)

        assert event_manager.unsubscribe(EventType.TURN_STARTED, subscriber)
        assert not event_manager.unsubscribe(EventType.TURN_STARTED, subscriber)

        event_manager.publish(make_turn_event())
        event_manager.process_events()
        subscriber.assert_not_called()

    def test_universal_subscriber(self, event_manager):
        """Test that a universal subscriber sees every event type."""
        subscriber = Mock()
        event_manager.subscribe_all(subscriber)

        event_manager.publish(make_turn_event())
        event_manager.publish(LogMessage(turn=1, message="hi", category="BATTLE",
                                         level=LogLevel.INFO, source="test"))
        event_manager.process_events()

        assert subscriber.call_count == 2

    def test_clear_queue(self, event_manager):
        """Test dropping queued events."""
        event_manager.publish(make_turn_event())
        event_manager.publish(make_turn_event())
        assert event_manager.clear_queue() == 2
        assert event_manager.process_events() == 0

    def test_statistics_and_history(self, event_manager):
        """Test counters and the recent event history."""
        event_manager.subscribe(EventType.TURN_STARTED, Mock())
        event_manager.publish(make_turn_event(7), source="tester")
        event_manager.process_events()

        stats = event_manager.get_statistics()
        assert stats["events_published"] == 1
        assert stats["events_processed"] == 1
        assert stats["subscribers_count"] == 1
        assert stats["published_by_type"] == {"TURN_STARTED": 1}

        recent = event_manager.get_recent_events()
        assert recent[-1]["event_type"] == "TurnStarted"
        assert recent[-1]["turn"] == 7
        assert recent[-1]["source"] == "tester"

    def test_debug_callback(self):
        """Test that debug tracing goes to the callback when enabled."""
        lines = []
        manager = EventManager(enable_debug_logging=True)
        manager.set_debug_callback(lines.append)

        manager.publish(make_turn_event())
        manager.process_events()

        assert any(line.startswith("[EVENT] Published TurnStarted") for line in lines)

    def test_shutdown(self, event_manager):
        """Test that shutdown drops subscribers and queued events."""
        subscriber = Mock()
        event_manager.subscribe(EventType.TURN_STARTED, subscriber)
        event_manager.publish(make_turn_event())

        event_manager.shutdown()
        event_manager.publish(make_turn_event())
        event_manager.process_events()

        subscriber.assert_not_called()
