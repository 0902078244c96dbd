"""Tests for the subscription pre-flight check."""
import asyncio
import logging

import httpx
import pytest

from get_secretmanager_secrets.secrets.domains import subscription
from get_secretmanager_secrets.secrets.domains.errors import EntitlementDenied
from get_secretmanager_secrets.secrets.domains.subscription import (
    SOFT_FAILURE_MESSAGE,
    validate_subscription,
)


@pytest.fixture
def mock_transport(monkeypatch):
    """Route the check's AsyncClient through an httpx.MockTransport.

    Returns a function taking the request handler; requests are recorded.
    """
    real_async_client = httpx.AsyncClient
    requests = []

    def install(handler):
        def recording_handler(request):
            requests.append(request)
            return handler(request)

        monkeypatch.setattr(
            subscription.httpx,
            "AsyncClient",
            lambda **kwargs: real_async_client(transport=httpx.MockTransport(recording_handler), **kwargs),
        )
        return requests

    return install


class TestValidateSubscription:
    """Outcomes of the pre-flight call."""

    @pytest.mark.asyncio
    async def test_success(self, mock_transport):
        """Test that a 200 passes silently and the repository is in the URL."""
        requests = mock_transport(lambda request: httpx.Response(200, json={}))

        await validate_subscription("octo/repo")

        assert len(requests) == 1
        assert str(requests[0].url) == (
            "https://agent.api.stepsecurity.io/v1/github/octo/repo/actions/subscription"
        )

    @pytest.mark.asyncio
    async def test_forbidden_raises(self, mock_transport):
        """Test that a 403 denies the run with a support pointer."""
        mock_transport(lambda request: httpx.Response(403))

        with pytest.raises(EntitlementDenied) as exc_info:
            await validate_subscription("octo/repo")

        assert "support@stepsecurity.io" in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 404, 500, 503])
    async def test_other_errors_are_soft(self, mock_transport, status, caplog):
        """Test that non-403 failures only log."""
        mock_transport(lambda request: httpx.Response(status))

        with caplog.at_level(logging.INFO):
            await validate_subscription("octo/repo")

        assert "Continuing to next step" in caplog.text

    @pytest.mark.asyncio
    async def test_timeout_is_soft(self, mock_transport, caplog):
        """Test that a timeout only logs."""
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        mock_transport(handler)

        with caplog.at_level(logging.INFO):
            await validate_subscription("octo/repo")

        assert "Timeout or API not reachable" in caplog.text

    @pytest.mark.asyncio
    async def test_unreachable_is_soft(self, mock_transport):
        """Test that a connection failure does not raise."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        mock_transport(handler)

        await validate_subscription("octo/repo")

    @pytest.mark.asyncio
    async def test_unknown_repository_skips_call(self, mock_transport):
        """Test that no request is made without a repository."""
        requests = mock_transport(lambda request: httpx.Response(403))

        await validate_subscription(None)

        assert requests == []

    @pytest.mark.asyncio
    async def test_soft_failure_reported_through_notifier(self, mock_transport):
        """Test that a soft failure goes to the notifier when one is given."""
        mock_transport(lambda request: httpx.Response(500))
        messages = []

        await validate_subscription("octo/repo", notify=messages.append)

        assert messages == [SOFT_FAILURE_MESSAGE]

    @pytest.mark.asyncio
    async def test_success_reports_nothing(self, mock_transport):
        mock_transport(lambda request: httpx.Response(200))
        messages = []

        await validate_subscription("octo/repo", notify=messages.append)

        assert messages == []

    @pytest.mark.asyncio
    async def test_stalled_response_capped_by_total_timeout(self, mock_transport):
        """Test that a response slower than the timeout is abandoned as a soft failure."""
        async def stalled(request):
            await asyncio.sleep(5)
            return httpx.Response(403)

        mock_transport(stalled)
        messages = []

        await asyncio.wait_for(
            validate_subscription("octo/repo", notify=messages.append, timeout=0.05),
            timeout=2,
        )

        assert messages == [SOFT_FAILURE_MESSAGE]
