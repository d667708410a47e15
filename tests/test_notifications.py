import pytest

from qctrack.services.notifications import NotificationStore, map_severity


def _add(store: NotificationStore, n: int, **kwargs):
    return [
        store.add(title=f"N{i}", message="msg", type="system", severity="info", **kwargs)
        for i in range(n)
    ]


class TestNotificationStore:
    def test_add_prepends_unread(self, notifications):
        first, second = _add(notifications, 2)

        assert notifications.notifications == [second, first]
        assert not second.read
        assert second.id != first.id

    def test_unread_count_tracks_every_mutation(self, notifications):
        observed = []
        notifications.subscribe(lambda e: observed.append(e.data) if e.name == "unread_count" else None)

        created = _add(notifications, 4)
        notifications.mark_read(created[1].id)
        notifications.mark_read(created[1].id)
        _add(notifications, 1)

        expected = sum(1 for n in notifications.notifications if not n.read)
        assert notifications.unread_count == expected == 4
        assert observed == [1, 2, 3, 4, 3, 3, 4]

    def test_mark_all_read_scenario(self, notifications):
        created = _add(notifications, 8)
        for n in created[:3]:
            notifications.mark_read(n.id)
        assert notifications.unread_count == 5

        changed = notifications.mark_all_read()

        assert changed == 5
        assert notifications.unread_count == 0
        assert len(notifications.notifications) == 8

    def test_mark_read_unknown_id(self, notifications):
        assert notifications.mark_read("missing") is False

    def test_list_filters_by_recipient(self, notifications):
        broadcast = notifications.add("All", "m", "system", "info")
        mine = notifications.add("Mine", "m", "system", "info", user_id="alice")
        notifications.add("Theirs", "m", "system", "info", user_id="bob")

        assert notifications.list(user_id="alice") == [mine, broadcast]

    def test_list_unread_only_and_limit(self, notifications):
        created = _add(notifications, 3)
        notifications.mark_read(created[2].id)

        assert notifications.list(unread_only=True) == [created[1], created[0]]
        assert notifications.list(limit=1) == [created[2]]


@pytest.mark.parametrize(
    "level,expected",
    [("high", "critical"), ("medium", "warning"), ("low", "info"), (None, "info"), ("other", "info")],
)
def test_map_severity(level, expected):
    assert map_severity(level) == expected
