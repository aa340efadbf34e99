"""Per-request data carried through the contact pipeline."""
from dataclasses import dataclass

UNKNOWN_IP = "unknown"


@dataclass(frozen=True)
class RawSubmission:
    """Untrusted form input after bounding (see services.normalizer)."""

    name: str = ""
    email: str = ""
    phone: str = ""
    message: str = ""
    company: str = ""
    gdpr: bool = False


@dataclass(frozen=True)
class SafeMessage:
    """
    Validated, hardened submission ready for the mail dispatcher.

    name, phone and message are already HTML-escaped; email is CR/LF free but
    not escaped because it is used as the Reply-To address.

    Length limits (name 120, phone 60, message 4000) bound the text before
    escaping. An escaped field can be up to five times longer, since every
    reserved character becomes an entity such as ``&amp;``.
    """

    name: str
    email: str
    message: str
    phone: str = ""
    consent_given: bool = True
    source_ip: str = UNKNOWN_IP
