"""
Cookie and shared-session data models.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from session_handoff.errors import InvalidInputError

# Cookie name identifying the target application's session
SESSION_COOKIE_NAME = "PHPSESSID"


@dataclass(frozen=True)
class CookieRecord:
    """A single browser cookie in the format session pools understand"""
    value: str
    domain: str
    name: str = SESSION_COOKIE_NAME
    path: str = "/"
    http_only: bool = True
    secure: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert cookie to the browser cookie dictionary format"""
        return {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "httpOnly": self.http_only,
            "secure": self.secure,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CookieRecord":
        """Create cookie from dictionary"""
        return cls(
            name=data.get("name", SESSION_COOKIE_NAME),
            value=data["value"],
            domain=data["domain"],
            path=data.get("path", "/"),
            http_only=data.get("httpOnly", True),
            secure=data.get("secure", True),
        )

    @property
    def masked_value(self) -> str:
        """Cookie value safe for logs"""
        return mask_secret(self.value)


def mask_secret(value: Optional[str]) -> str:
    """Keep the first four characters of a secret, hide the rest."""
    if not value:
        return ""
    if len(value) <= 4:
        return "*" * len(value)
    return f"{value[:4]}…"


def build_cookie(value: Optional[str], domain: Optional[str]) -> CookieRecord:
    """
    Build the session cookie from caller input.

    Args:
        value: Session id to place in the cookie
        domain: Cookie domain scope, e.g. ".example.com"

    Returns:
        CookieRecord with the fixed name, path "/", httpOnly and secure set

    Raises:
        InvalidInputError: If value or domain is missing or blank
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError("Session cookie value (phpsessid) must be a non-empty string", field="phpsessid")
    if not isinstance(domain, str) or not domain.strip():
        raise InvalidInputError("Cookie domain must be a non-empty string", field="domain")
    return CookieRecord(value=value, domain=domain)


@dataclass
class StorageRef:
    """Identifies a key-value store so a downstream run can open it"""
    id: Optional[str] = None
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class SharedSessionPayload:
    """The record written to the key-value store for downstream runs"""
    cookie: CookieRecord
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert payload to dictionary for serialization"""
        return {
            "cookie": self.cookie.to_dict(),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SharedSessionPayload":
        """Create payload from dictionary"""
        return cls(
            cookie=CookieRecord.from_dict(data["cookie"]),
            timestamp=data["timestamp"],
        )
