from batch_signer.agent.client import AgentClient
from batch_signer.agent.exceptions import AgentError, AgentUnreachableError
from batch_signer.logging.logger import Log
from batch_signer.notifications.base import BaseNotifier

AGENT_NOT_RUNNING_TITLE = "Signing agent not detected"
AGENT_NOT_RUNNING_TEXT = "Please start the signing agent on this computer, then try again."
NO_CERTIFICATE_TITLE = "USB key not detected"
NO_CERTIFICATE_TEXT = (
    "No certificate detected. Please insert your USB key containing a valid certificate."
)


class AgentReadinessCheck:
    """Verifies the agent is running and exposes at least one certificate.

    Tells the user what to fix and returns False instead of raising.
    """

    def __init__(self, agent_client: AgentClient, notifier: BaseNotifier) -> None:
        self._agent_client = agent_client
        self._notifier = notifier

    async def __call__(self) -> bool:
        try:
            certificates = await self._agent_client.list_certificates()
        except AgentUnreachableError:
            Log.warning("Signing agent is not running")
            self._notifier.error(AGENT_NOT_RUNNING_TITLE, AGENT_NOT_RUNNING_TEXT)
            return False
        except AgentError as exc:
            Log.warning(f"Signing agent check failed: {exc}")
            self._notifier.warning(NO_CERTIFICATE_TITLE, NO_CERTIFICATE_TEXT)
            return False

        if not certificates:
            Log.warning("Signing agent reports no certificate")
            self._notifier.warning(NO_CERTIFICATE_TITLE, NO_CERTIFICATE_TEXT)
            return False

        Log.info(f"Signing agent ready with {len(certificates)} certificate(s)")
        return True
