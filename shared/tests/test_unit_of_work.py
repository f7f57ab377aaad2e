"""Tests for the unit of work and the in-process message bus."""

from __future__ import annotations

from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from apps.bookings.domain.events import BookingInitiated, BookingStatusChanged
from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import PersistenceFailure


class MessageBusTests(TestCase):
    def test_handlers_run_in_registration_order(self) -> None:
        bus = MessageBus()
        calls: list[str] = []
        bus.register_event_handler(BookingInitiated, lambda event: calls.append(f"a:{event.booking_id}"))
        bus.register_event_handler(BookingInitiated, lambda event: calls.append(f"b:{event.booking_id}"))

        bus.publish_events([BookingInitiated(booking_id="PHC-1")])

        self.assertEqual(calls, ["a:PHC-1", "b:PHC-1"])

    def test_registering_twice_is_a_no_op(self) -> None:
        bus = MessageBus()
        handler = mock.Mock(__name__="handler")

        bus.register_event_handler(BookingInitiated, handler)
        bus.register_event_handler(BookingInitiated, handler)
        bus.publish_events([BookingInitiated(booking_id="PHC-1")])

        self.assertEqual(bus.handlers_for(BookingInitiated), [handler])
        handler.assert_called_once()

    def test_failing_handler_does_not_stop_the_others(self) -> None:
        bus = MessageBus()
        broken = mock.Mock(__name__="broken", side_effect=RuntimeError("boom"))
        healthy = mock.Mock(__name__="healthy")
        bus.register_event_handler(BookingInitiated, broken)
        bus.register_event_handler(BookingInitiated, healthy)

        bus.publish_events([BookingInitiated(booking_id="PHC-1")])

        healthy.assert_called_once()


class DjangoUnitOfWorkTests(TestCase):
    def _event(self) -> BookingStatusChanged:
        return BookingStatusChanged(
            aggregate_id="PHC-1",
            booking_id="PHC-1",
            old_status="PAYMENT_PENDING",
            new_status="PAYMENT_SUCCESS",
        )

    @mock.patch("shared.application.message_bus.message_bus.publish_events")
    def test_events_published_after_commit(self, publish: mock.Mock) -> None:
        event = self._event()

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with DjangoUnitOfWork() as uow:
                uow.record(event)
            publish.assert_not_called()

        self.assertEqual(len(callbacks), 1)
        publish.assert_called_once_with([event])

    @mock.patch("shared.application.message_bus.message_bus.publish_events")
    def test_events_discarded_on_error(self, publish: mock.Mock) -> None:
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(ValueError):
                with DjangoUnitOfWork() as uow:
                    uow.record(self._event())
                    raise ValueError("invalid")

        self.assertEqual(callbacks, [])
        publish.assert_not_called()

    def test_database_errors_become_persistence_failures(self) -> None:
        with self.assertRaises(PersistenceFailure) as ctx:
            with DjangoUnitOfWork():
                raise DatabaseError("connection lost")

        self.assertEqual(ctx.exception.status_code, 503)
        self.assertIsInstance(ctx.exception.__cause__, DatabaseError)

    def test_event_serialisation(self) -> None:
        data = self._event().to_dict()

        self.assertEqual(data["event_type"], "BookingStatusChanged")
        self.assertEqual(data["new_status"], "PAYMENT_SUCCESS")
        self.assertEqual(data["aggregate_id"], "PHC-1")
