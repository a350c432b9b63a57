import re
from dataclasses import dataclass

_COMMON_NAME = re.compile(r"CN=([^,]+)")


@dataclass(frozen=True)
class Certificate:
    """Signing identity exposed by the agent (one per key on the inserted token)."""

    alias: str
    serial_number: str
    algorithm: str
    issuer: str = ""
    subject: str = ""
    type: str = ""
    valid_from: str = ""
    valid_until: str = ""

    @property
    def issuer_common_name(self) -> str:
        match = _COMMON_NAME.search(self.issuer)
        return match.group(1) if match else self.issuer


@dataclass(frozen=True)
class AgentSignature:
    """Output of the agent's sign operation."""

    signature_value: str
    certificate: str
    algorithm: str | None = None
