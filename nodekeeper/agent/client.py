"""Client for the node agent's upgrade call."""

from typing import Optional

import requests

from ..config import DEFAULT_COMMAND_TIMEOUT
from ..errors import AgentCallError
from ..model.upgrade import UpgradeRequest
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AgentClient:
    """Calls the upgrade endpoint of one node agent."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_COMMAND_TIMEOUT + 30,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def upgrade(self, request: UpgradeRequest) -> None:
        """Send one upgrade request and wait for the agent to finish it."""
        url = f"{self.base_url}/upgrade"
        payload = request.model_dump(by_alias=True, mode="json")
        logger.debug(f"POST {url}: {payload}")

        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AgentCallError(f"upgrade call to {url} failed: {e}")

        if response.status_code >= 300:
            raise AgentCallError(
                f"agent rejected upgrade ({response.status_code}): {self._detail(response)}",
                status_code=response.status_code,
            )

    def healthy(self) -> bool:
        """Check whether the agent answers its health endpoint."""
        try:
            response = self.session.get(f"{self.base_url}/healthz", timeout=5)
        except requests.RequestException:
            return False
        return response.status_code == 200

    @staticmethod
    def _detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict) and "detail" in body:
            return str(body["detail"])
        return str(body)
