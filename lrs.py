"""Asynchronous client for the parts of the LRS REST API used by the SCORM profile.

Requests are made with a blocking ``requests.Session`` pushed onto a worker
thread, so every public method is a coroutine. Nothing here retries: failures
surface as ``LRSError`` and a missing document as ``StateNotFoundError``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from xapi import XAPI_VERSION

LOGGER = logging.getLogger("scorm.lrs")

DEFAULT_TIMEOUT = 10.0


class LRSError(RuntimeError):
    """Raised when the LRS cannot be reached or answers with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StateNotFoundError(LookupError):
    """Raised when a requested state or profile document does not exist."""


class LRSClient:
    def __init__(
        self,
        endpoint: str,
        auth: Optional[str] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "X-Experience-API-Version": XAPI_VERSION,
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        if auth:
            self.session.headers["Authorization"] = auth

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        body: Any = None,
        missing: Optional[str] = None,
    ) -> requests.Response:
        url = f"{self.endpoint}/{path}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                data=None if body is None else json.dumps(body),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise LRSError(f"{method} {url} failed: {exc}") from exc

        if response.status_code == 404 and missing is not None:
            raise StateNotFoundError(missing)
        if response.status_code >= 400:
            LOGGER.warning("LRS responded with status %s to %s %s", response.status_code, method, url)
            raise LRSError(
                f"{method} {url} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    async def _send(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        return await asyncio.to_thread(self._request, method, path, **kwargs)

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise LRSError(
                f"LRS returned a non-JSON body with status {response.status_code}",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _state_params(actor: Mapping[str, Any], activity_id: str, state_id: str) -> Dict[str, str]:
        return {
            "activityId": activity_id,
            "agent": json.dumps(dict(actor), separators=(",", ":")),
            "stateId": state_id,
        }

    async def send_statement(self, statement: Dict[str, Any]) -> List[str]:
        """Store one statement and return the ids the LRS generated for it."""

        response = await self._send("POST", "statements", body=statement)
        ids = self._json(response)
        LOGGER.debug("Stored statement %s (%s)", ids, statement.get("verb", {}).get("id"))
        return list(ids)

    async def get_state(self, actor: Mapping[str, Any], activity_id: str, state_id: str) -> Dict[str, Any]:
        response = await self._send(
            "GET",
            "activities/state",
            params=self._state_params(actor, activity_id, state_id),
            missing=f"No '{state_id}' document for {activity_id}",
        )
        return self._json(response)

    async def create_state(
        self, actor: Mapping[str, Any], activity_id: str, state_id: str, document: Dict[str, Any]
    ) -> None:
        """POST a JSON state document; the LRS creates it or merges into an existing one."""

        await self._send(
            "POST",
            "activities/state",
            params=self._state_params(actor, activity_id, state_id),
            body=document,
        )

    async def set_state(
        self, actor: Mapping[str, Any], activity_id: str, state_id: str, document: Dict[str, Any]
    ) -> None:
        """PUT a JSON state document, replacing whatever was stored before."""

        await self._send(
            "PUT",
            "activities/state",
            params=self._state_params(actor, activity_id, state_id),
            body=document,
        )

    async def get_agent_profile(self, actor: Mapping[str, Any], profile_id: str) -> Dict[str, Any]:
        response = await self._send(
            "GET",
            "agents/profile",
            params={"agent": json.dumps(dict(actor), separators=(",", ":")), "profileId": profile_id},
            missing=f"No agent profile {profile_id}",
        )
        return self._json(response)
