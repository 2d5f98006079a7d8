"""
User domain model.
The username doubles as the owner id of every drug the user stores.
"""
from datetime import datetime, timezone
from typing import Optional


class User:
    """Domain model for a registered account."""

    def __init__(
        self,
        username: str,
        email: str,
        password_hash: str,
        alerts_enabled: bool = True,
        created_at: Optional[datetime] = None
    ):
        self.username = username
        self.email = email
        self.password_hash = password_hash
        self.alerts_enabled = alerts_enabled
        self.created_at = created_at or datetime.now(timezone.utc)

    def can_receive_alerts(self) -> bool:
        return bool(self.alerts_enabled and self.email and self.email.strip())

    def __repr__(self):
        return f"User(username={self.username}, email={self.email}, alerts_enabled={self.alerts_enabled})"
