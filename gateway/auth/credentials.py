"""
Credential Stores
=================

``CredentialStore.verify`` is the only thing the token issuer needs from a
user database. ``PlaceholderCredentialStore`` is a stand-in that accepts a
single hard-coded account; it stores the password in plain text and must be
replaced with a real store before this gateway is exposed to anyone.
"""

import hmac
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..models import UserClaims

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Looks up an account by username and password"""

    @abstractmethod
    def verify(self, username: Any, password: Any) -> Optional[UserClaims]:
        """
        Check a username/password pair.

        Returns:
            The account's identity claims, or None when the pair is not valid.
        """


class PlaceholderCredentialStore(CredentialStore):
    """
    Single hard-coded account (``admin`` / ``password``, id 1).

    PLACEHOLDER: plain-text credential kept for local testing only.
    """

    def __init__(self, username: str = "admin", password: str = "password", user_id: int = 1):
        self._username = username
        self._password = password
        self._user_id = user_id

    def verify(self, username: Any, password: Any) -> Optional[UserClaims]:
        if not isinstance(username, str) or not isinstance(password, str):
            return None

        username_ok = hmac.compare_digest(username.encode(), self._username.encode())
        password_ok = hmac.compare_digest(password.encode(), self._password.encode())
        if not (username_ok and password_ok):
            logger.info("Rejected login attempt", extra={"username": username})
            return None

        return UserClaims(username=username, id=self._user_id)
