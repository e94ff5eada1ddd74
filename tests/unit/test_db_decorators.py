"""Unit tests for the rollback decorator."""

import pytest

from app.utils.db_decorators import with_rollback_on_error


class _Service:
    """Minimal service keeping its session on self."""

    def __init__(self, session):
        self.session = session

    @with_rollback_on_error
    async def fail(self):
        raise RuntimeError("boom")

    @with_rollback_on_error
    async def succeed(self):
        return 42


class TestWithRollbackOnError:
    """Tests for with_rollback_on_error."""

    @pytest.mark.asyncio
    async def test_rolls_back_and_reraises(self, mock_session):
        """Exception triggers rollback and propagates."""
        service = _Service(mock_session)

        with pytest.raises(RuntimeError, match="boom"):
            await service.fail()

        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_success_does_not_touch_session(self, mock_session):
        """Successful call neither commits nor rolls back."""
        service = _Service(mock_session)

        assert await service.succeed() == 42

        mock_session.rollback.assert_not_awaited()
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rollback_failure_keeps_original_error(self, mock_session):
        """A failing rollback does not mask the original exception."""
        mock_session.rollback.side_effect = ConnectionError("db gone")
        service = _Service(mock_session)

        with pytest.raises(RuntimeError, match="boom"):
            await service.fail()

    @pytest.mark.asyncio
    async def test_session_keyword(self, mock_session):
        """Session passed as a keyword is found."""

        @with_rollback_on_error
        async def operation(session):
            raise ValueError("bad")

        with pytest.raises(ValueError):
            await operation(session=mock_session)

        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_without_session(self):
        """Functions without a session still run."""

        @with_rollback_on_error
        async def operation(value):
            return value * 2

        assert await operation(21) == 42

