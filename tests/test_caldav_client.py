import unittest
from datetime import date, datetime, timedelta
from unittest import mock

import vobject

from datesync.caldav_client import EVENT_CATEGORY, CalDAVClient, SyncError, event_uid
from datesync.models import CalendarEvent, EventKind


def _resource(title: str, uid: str, categories=(EVENT_CATEGORY,)) -> mock.Mock:
    cal = vobject.iCalendar()
    vevent = cal.add("vevent")
    vevent.add("uid").value = uid
    vevent.add("dtstart").value = date(2025, 3, 1)
    vevent.add("summary").value = title
    if categories:
        vevent.add("categories").value = list(categories)
    return mock.Mock(data=cal.serialize())


class CalDAVClientTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch("datesync.caldav_client.caldav.DAVClient")
        self.dav_client_cls = patcher.start()
        self.addCleanup(patcher.stop)

        self.calendar = mock.Mock()
        self.calendar.name = "Personal"
        principal = self.dav_client_cls.return_value.principal.return_value
        principal.calendars.return_value = [self.calendar, mock.Mock(name="Work")]

    def _client(self, fail_open: bool = True) -> CalDAVClient:
        return CalDAVClient("https://dav.example.com", "u", "p", fail_open=fail_open)

    def test_uses_first_calendar(self) -> None:
        client = self._client()

        self.assertIs(client.calendar, self.calendar)
        self.assertEqual(client.calendar_name, "Personal")
        self.dav_client_cls.assert_called_once_with(url="https://dav.example.com", username="u", password="p")

    def test_no_calendars_raises(self) -> None:
        self.dav_client_cls.return_value.principal.return_value.calendars.return_value = []

        with self.assertRaises(SyncError):
            self._client()

    def test_connection_error_raises(self) -> None:
        self.dav_client_cls.return_value.principal.side_effect = RuntimeError("401")

        with self.assertRaises(SyncError):
            self._client()

    def test_list_existing_queries_whole_year_expanded(self) -> None:
        self.calendar.search.return_value = []

        self.assertEqual(self._client().list_existing(2025), {})

        self.calendar.search.assert_called_once_with(
            start=datetime(2025, 1, 1, 0, 0, 0),
            end=datetime(2025, 12, 31, 23, 59, 59),
            event=True,
            expand=True,
        )

    def test_list_existing_keeps_birthday_category_only(self) -> None:
        self.calendar.search.return_value = [
            _resource("Alice's birthday", "uid-a"),
            _resource("Alice and Bob's anniversary", "uid-b"),
            _resource("Dentist", "uid-c", categories=()),
            _resource("Team offsite", "uid-d", categories=("Work",)),
            mock.Mock(data="not an ical object"),
        ]

        existing = self._client().list_existing(2025)

        self.assertEqual(existing, {"Alice's birthday": "uid-a", "Alice and Bob's anniversary": "uid-b"})

    def test_list_existing_last_duplicate_wins(self) -> None:
        self.calendar.search.return_value = [
            _resource("Bob's birthday", "uid-1"),
            _resource("Bob's birthday", "uid-2"),
        ]

        self.assertEqual(self._client().list_existing(2025), {"Bob's birthday": "uid-2"})

    def test_list_existing_fails_open(self) -> None:
        self.calendar.search.side_effect = RuntimeError("timeout")

        with self.assertLogs("datesync.caldav_client", level="ERROR"):
            self.assertEqual(self._client().list_existing(2025), {})

    def test_list_existing_strict_mode_raises(self) -> None:
        self.calendar.search.side_effect = RuntimeError("timeout")

        with self.assertRaises(SyncError):
            self._client(fail_open=False).list_existing(2025)

    def test_create_event_shape(self) -> None:
        event = CalendarEvent(
            title="Alice's birthday",
            start=date(2025, 12, 5),
            end=date(2025, 12, 6),
            kind=EventKind.BIRTHDAY,
        )

        self.assertTrue(self._client().create_event(event))

        args, kwargs = self.calendar.save_event.call_args
        self.assertEqual(kwargs, {"no_overwrite": True})
        self.assertIn("RRULE:FREQ=YEARLY", args[0])
        self.assertIn("TRANSP:TRANSPARENT", args[0])
        self.assertIn("CLASS:PRIVATE", args[0])
        self.assertIn("DTSTART;VALUE=DATE:20251205", args[0])
        self.assertIn("DTEND;VALUE=DATE:20251206", args[0])

        vevent = vobject.readOne(args[0]).vevent
        self.assertEqual(vevent.summary.value, "Alice's birthday")
        self.assertEqual(vevent.uid.value, event_uid("Alice's birthday"))
        self.assertEqual(vevent.categories.value, [EVENT_CATEGORY])
        triggers = sorted(alarm.trigger.value for alarm in vevent.valarm_list)
        self.assertEqual(triggers, [timedelta(days=-7), timedelta(days=-1)])

    def test_anniversary_uses_same_category(self) -> None:
        event = CalendarEvent(
            title="Alice and Bob's anniversary",
            start=date(2025, 2, 14),
            end=date(2025, 2, 15),
            kind=EventKind.ANNIVERSARY,
        )

        self._client().create_event(event)

        vevent = vobject.readOne(self.calendar.save_event.call_args[0][0]).vevent
        self.assertEqual(vevent.categories.value, [EVENT_CATEGORY])

    def test_create_event_failure_is_reported(self) -> None:
        self.calendar.save_event.side_effect = RuntimeError("412 Precondition Failed")
        event = CalendarEvent(title="Bob's birthday", start=date(2025, 1, 1), end=date(2025, 1, 2))

        with self.assertLogs("datesync.caldav_client", level="ERROR"):
            self.assertFalse(self._client().create_event(event))


class EventUidTests(unittest.TestCase):
    def test_uid_is_stable_and_readable(self) -> None:
        uid = event_uid("Alice's birthday")
        self.assertEqual(uid, event_uid("Alice's birthday"))
        self.assertTrue(uid.startswith("datesync-alice-s-birthday-"))
        self.assertNotEqual(uid, event_uid("Alice's anniversary"))

    def test_uid_for_non_ascii_title(self) -> None:
        self.assertRegex(event_uid("Zoë's birthday"), r"^datesync-zo-s-birthday-[0-9a-f]{8}$")
        self.assertRegex(event_uid("佐藤"), r"^datesync-[0-9a-f]{8}$")


if __name__ == "__main__":
    unittest.main()
