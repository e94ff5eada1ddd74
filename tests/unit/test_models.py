"""Unit tests for computed model predicates and time helpers."""

from datetime import UTC, datetime, timedelta, timezone

from app.models import User
from app.services.user.membership import end_of_day
from app.utils.datetime_utils import as_utc


class TestInviteCodeExpiry:
    """Tests for InviteCode.is_expired."""

    def test_not_expired_before_deadline(self, invite_code, now):
        """Code is valid until expires_at."""
        assert not invite_code.is_expired(now)

    def test_expired_after_deadline(self, invite_code, now):
        """Code is expired once now passes expires_at."""
        assert invite_code.is_expired(now + timedelta(days=1))

    def test_no_deadline_never_expires(self, invite_code, now):
        """Codes without expires_at never expire."""
        invite_code.expires_at = None
        assert not invite_code.is_expired(now + timedelta(days=3650))

    def test_naive_deadline_treated_as_utc(self, invite_code, now):
        """Naive values read from SQLite compare as UTC."""
        invite_code.expires_at = (now - timedelta(seconds=1)).replace(tzinfo=None)
        assert invite_code.is_expired(now)


class TestOrderExpiry:
    """Tests for Order.is_past_expiry."""

    def test_boundary_is_not_past(self, order):
        """At exactly expire_at the order is still valid."""
        assert not order.is_past_expiry(order.expire_at)

    def test_one_second_after(self, order):
        """One second later the window has ended."""
        assert order.is_past_expiry(order.expire_at + timedelta(seconds=1))


class TestVipWindow:
    """Tests for User.has_active_vip."""

    def test_inactive_without_flag(self, now):
        """A stored expiry alone does not make a user VIP."""
        user = User(is_vip=False, vip_expire_at=now + timedelta(days=1))
        assert not user.has_active_vip(now)

    def test_active_within_window(self, now):
        """Flag plus future expiry means active."""
        user = User(is_vip=True, vip_expire_at=now + timedelta(days=1))
        assert user.has_active_vip(now)

    def test_lapsed_window(self, now):
        """A past expiry means inactive even with the flag set."""
        user = User(is_vip=True, vip_expire_at=now - timedelta(seconds=1))
        assert not user.has_active_vip(now)


class TestTimeHelpers:
    """Tests for as_utc and end_of_day."""

    def test_as_utc_naive(self):
        """Naive datetimes get UTC attached unchanged."""
        value = as_utc(datetime(2026, 1, 1, 8, 30))
        assert value == datetime(2026, 1, 1, 8, 30, tzinfo=UTC)

    def test_end_of_day(self, now):
        """End of day is the last microsecond of the UTC date."""
        assert end_of_day(now) == datetime(
            2026, 10, 17, 23, 59, 59, 999999, tzinfo=UTC
        )

    def test_end_of_day_converts_timezone(self):
        """Aware values are converted to UTC before truncation."""
        late_evening = datetime(
            2026, 10, 17, 23, 0, tzinfo=timezone(timedelta(hours=-3))
        )
        assert end_of_day(late_evening).date().isoformat() == "2026-10-18"
