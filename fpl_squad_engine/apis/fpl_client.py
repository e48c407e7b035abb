from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..models import Snapshot
from .snapshot import parse_snapshot

logger = logging.getLogger(__name__)


class FPLClient:
    """
    Read-only client for the public FPL endpoints.

    Only bootstrap-static and fixtures are used; neither needs authentication.
    Transient request failures are retried with exponential backoff, anything
    left after that is raised to the caller.
    """

    retry_wait = wait_exponential(multiplier=1, min=1, max=8)

    def __init__(
        self,
        base_url: str = "https://fantasy.premierleague.com/api",
        timeout: int = 30,
        retry_attempts: int = 3,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "fpl-squad-engine/0.1",
            "Accept": "application/json",
        })

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type(requests.RequestException),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                resp = self.session.get(url, params=params, timeout=self.timeout)
                resp.raise_for_status()
                return resp.json()

    def get_bootstrap(self) -> Dict[str, Any]:
        return self._get("bootstrap-static/")

    def get_fixtures(self, event: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"event": event} if event else None
        return self._get("fixtures/", params=params)

    def fetch_snapshot(self, gameweek: Optional[int] = None) -> Snapshot:
        """Fetch bootstrap and fixtures concurrently, then parse both.

        The two reads are independent; both must succeed before parsing.
        """
        with ThreadPoolExecutor(max_workers=2) as executor:
            bootstrap_future = executor.submit(self.get_bootstrap)
            fixtures_future = executor.submit(self.get_fixtures)
            bootstrap = bootstrap_future.result()
            fixtures = fixtures_future.result()
        logger.debug("Fetched bootstrap (%d elements) and %d fixtures",
                     len(bootstrap.get("elements", [])) if isinstance(bootstrap, dict) else 0,
                     len(fixtures) if isinstance(fixtures, list) else 0)
        return parse_snapshot(bootstrap, fixtures, gameweek=gameweek)
