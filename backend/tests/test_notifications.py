# Overview: Pytest coverage for the notification inbox and its display labels.

from datetime import datetime, timedelta

import pytest

from instasupply.extensions import db
from instasupply.models import Notification
from instasupply.services import notification_service
from instasupply.time_utils import utcnow, format_time_ago, date_group_label


def _notify(supplier, type="System", title="Hello", **kwargs):
    return notification_service.emit(supplier.id, type, title, kwargs.pop("message", "msg"), **kwargs)


class TestEmit:
    def test_records_notification(self, supplier_a):
        n = _notify(supplier_a, "Order", "New Order #INS0001", icon="order", related_id=7,
                    related_type="Order", metadata={"item_count": 2})

        assert n.id is not None
        assert n.is_read is False
        assert n.extra == {"item_count": 2}

    def test_unknown_type_is_swallowed(self, supplier_a):
        assert _notify(supplier_a, "Gossip") is None
        assert db.session.query(Notification).count() == 0


class TestInboxRoutes:
    def test_list_newest_first_with_unread_count(self, client, headers_a, supplier_a, supplier_b):
        _notify(supplier_a, title="first")
        _notify(supplier_a, "Order", title="second", icon="order")
        _notify(supplier_b, title="not mine")

        resp = client.get("/api/notifications", headers=headers_a)

        assert resp.status_code == 200
        assert [n["title"] for n in resp.json["notifications"]] == ["second", "first"]
        assert resp.json["unread_count"] == 2
        assert resp.json["total"] == 2
        assert list(resp.json["grouped_by_date"].keys()) == ["Today"]
        assert resp.json["notifications"][0]["time_ago"] == "Just now"

    def test_type_and_read_filters(self, client, headers_a, supplier_a):
        _notify(supplier_a, "Order", icon="order")
        read = _notify(supplier_a, "Product", icon="alert")
        read.is_read = True
        db.session.commit()

        assert client.get("/api/notifications?type=Order", headers=headers_a).json["total"] == 1
        assert client.get("/api/notifications?type=All", headers=headers_a).json["total"] == 2
        assert client.get("/api/notifications?is_read=true", headers=headers_a).json["total"] == 1
        assert client.get("/api/notifications?type=Spam", headers=headers_a).status_code == 400

    def test_mark_one_read(self, client, headers_a, supplier_a):
        n = _notify(supplier_a)

        resp = client.put(f"/api/notifications/{n.id}/read", headers=headers_a)

        assert resp.status_code == 200
        assert resp.json["notification"]["is_read"] is True

    @pytest.mark.parametrize("path", ["/api/notifications/mark-all-read", "/api/notifications/read-all"])
    def test_mark_all_read(self, client, headers_a, supplier_a, supplier_b, path):
        _notify(supplier_a)
        _notify(supplier_a)
        other = _notify(supplier_b)

        resp = client.put(path, headers=headers_a)

        assert resp.status_code == 200
        assert resp.json["count"] == 2
        db.session.refresh(other)
        assert other.is_read is False

    def test_delete_and_isolation(self, client, headers_a, headers_b, supplier_a):
        n = _notify(supplier_a)

        assert client.delete(f"/api/notifications/{n.id}", headers=headers_b).status_code == 404
        assert client.put(f"/api/notifications/{n.id}/read", headers=headers_b).status_code == 404
        assert client.delete(f"/api/notifications/{n.id}", headers=headers_a).status_code == 200
        assert client.delete(f"/api/notifications/{n.id}", headers=headers_a).status_code == 404


class TestDisplayLabels:
    NOW = datetime(2025, 3, 14, 15, 0, 0)

    @pytest.mark.parametrize("delta,label", [
        (timedelta(seconds=20), "Just now"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(minutes=45), "45 minutes ago"),
        (timedelta(hours=1), "1 hour ago"),
        (timedelta(hours=5), "5 hours ago"),
    ])
    def test_same_day(self, delta, label):
        assert format_time_ago(self.NOW - delta, now=self.NOW) == label

    def test_yesterday(self):
        assert format_time_ago(datetime(2025, 3, 13, 9, 5), now=self.NOW) == "Yesterday at 9:05 AM"
        assert format_time_ago(datetime(2025, 3, 13, 13, 30), now=self.NOW) == "Yesterday at 1:30 PM"

    def test_older_uses_short_date(self):
        assert format_time_ago(datetime(2025, 3, 1, 8, 0), now=self.NOW) == "Mar 1, 2025"

    def test_date_groups(self):
        assert date_group_label(self.NOW - timedelta(hours=2), now=self.NOW) == "Today"
        assert date_group_label(self.NOW - timedelta(hours=30), now=self.NOW) == "Yesterday"
        assert date_group_label(datetime(2025, 3, 12, 10, 0), now=self.NOW) == "Mar 12, 2025"

    def test_defaults_to_current_time(self):
        assert format_time_ago(utcnow()) == "Just now"
