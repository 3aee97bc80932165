from __future__ import annotations

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


class TurnstileVerifier:
    """Server-side verification of Cloudflare Turnstile bot-challenge tokens.

    Without a secret key the check is skipped in development and denied
    everywhere else. Network failures only fail open in development.
    """

    def __init__(
        self,
        secret: Optional[str],
        *,
        development: bool = False,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self._secret = secret or None
        self._development = bool(development)
        self._timeout = timeout
        self._http = session or requests.Session()

    def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> bool:
        if not self._secret:
            if self._development:
                logger.warning("No TURNSTILE_SECRET_KEY, skipping verification in development")
                return True
            logger.error("TURNSTILE_SECRET_KEY is not set, denying request")
            return False

        if not token or not isinstance(token, str) or len(token) < 10:
            return False

        form = {"secret": self._secret, "response": token}
        if remote_ip and remote_ip != "unknown":
            form["remoteip"] = remote_ip

        try:
            response = self._http.post(TURNSTILE_VERIFY_URL, data=form, timeout=self._timeout)
            if not response.ok:
                logger.error("Turnstile verification API returned %s", response.status_code)
                return False
            result = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Turnstile verification error: %s", exc)
            return self._development

        if not result.get("success"):
            logger.warning("Turnstile verification failed: %s", result.get("error-codes"))
            return False
        return True
