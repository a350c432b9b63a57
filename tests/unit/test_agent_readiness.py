from unittest.mock import AsyncMock, MagicMock

import pytest

from batch_signer.agent.client import AgentClient
from batch_signer.agent.exceptions import AgentError, AgentUnreachableError
from batch_signer.agent.models import Certificate
from batch_signer.agent.readiness import (
    AGENT_NOT_RUNNING_TITLE,
    NO_CERTIFICATE_TITLE,
    AgentReadinessCheck,
)
from batch_signer.notifications.base import BaseNotifier

pytestmark = pytest.mark.anyio


def _make_check() -> tuple[AgentReadinessCheck, MagicMock, MagicMock]:
    agent_client = MagicMock(spec=AgentClient)
    agent_client.list_certificates = AsyncMock()
    notifier = MagicMock(spec=BaseNotifier)
    return AgentReadinessCheck(agent_client, notifier), agent_client, notifier


class TestAgentReadinessCheck:
    async def test_ready_with_certificate(self, certificate: Certificate) -> None:
        check, agent_client, notifier = _make_check()
        agent_client.list_certificates.return_value = [certificate]

        assert await check() is True
        notifier.error.assert_not_called()
        notifier.warning.assert_not_called()

    async def test_agent_not_running(self) -> None:
        check, agent_client, notifier = _make_check()
        agent_client.list_certificates.side_effect = AgentUnreachableError()

        assert await check() is False
        assert notifier.error.call_args.args[0] == AGENT_NOT_RUNNING_TITLE
        notifier.warning.assert_not_called()

    async def test_no_certificate(self) -> None:
        check, agent_client, notifier = _make_check()
        agent_client.list_certificates.return_value = []

        assert await check() is False
        assert notifier.warning.call_args.args[0] == NO_CERTIFICATE_TITLE
        notifier.error.assert_not_called()

    async def test_other_agent_error_is_reported_as_missing_certificate(self) -> None:
        check, agent_client, notifier = _make_check()
        agent_client.list_certificates.side_effect = AgentError("status 500")

        assert await check() is False
        assert notifier.warning.call_args.args[0] == NO_CERTIFICATE_TITLE
