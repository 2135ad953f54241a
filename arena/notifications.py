import logging

import requests

logger = logging.getLogger(__name__)


class NotificationClient:
    """
    Calls the hosted email functions after registration state changes.

    Sending is best effort: every failure is logged and reported as False,
    never raised, and never undoes the write that triggered it.
    """

    def __init__(self, base_url: str, api_key: str = '', timeout: float = 5):
        self.base_url = (base_url or '').rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def send_confirmation(self, email: str, full_name: str, team_name: str, tournament_id: str) -> bool:
        return self._post('send-email', {
            'email': email,
            'fullName': full_name,
            'teamName': team_name,
            'tournamentId': tournament_id,
        })

    def send_status_update(
        self,
        email: str,
        full_name: str,
        team_name: str,
        tournament_id: str,
        status: str
    ) -> bool:
        return self._post('send-status-update', {
            'email': email,
            'fullName': full_name,
            'teamName': team_name,
            'tournamentId': tournament_id,
            'status': status,
        })

    def _post(self, function: str, payload: dict) -> bool:
        if not self.enabled:
            logger.info("Notifications disabled; skipping %s", function)
            return False

        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'

        try:
            resp = requests.post(
                f"{self.base_url}/{function}",
                json=payload,
                headers=headers,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.warning("Notification %s failed: %s", function, e)
            return False

        if not resp.ok:
            logger.warning("Notification %s returned %s: %s", function, resp.status_code, resp.text[:200])
            return False
        return True
