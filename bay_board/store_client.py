from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from time import sleep
from typing import Any

import httpx

from bay_core.dates import ALL_DAYS
from bay_core.resolver import referenced_user_ids

from .config import StoreConfig

logger = logging.getLogger(__name__)

BAY_FIELDS = "bay_id,bay_number,location,status,type"
ASSIGNMENT_FIELDS = "assignment_id,bay_id,user_id,day_of_week,available_from,available_to"
CLAIM_FIELDS = "claim_id,bay_id,user_id,claim_date,status,created_by"
USER_FIELDS = "user_id,name"


@dataclass(frozen=True)
class ReadOperation:
    method: str
    path: str


READ_ONLY_OPERATIONS: dict[str, ReadOperation] = {
    "bays": ReadOperation("GET", "/bays"),
    "daily_claims": ReadOperation("GET", "/daily_claims"),
    "permanent_assignments": ReadOperation("GET", "/permanent_assignments"),
    "users": ReadOperation("GET", "/users"),
}


class ReadOnlyStoreClient:
    """Strict read-only client for the bay record store's REST interface.

    Only the operation names listed in READ_ONLY_OPERATIONS are executable.
    Any unknown operation is rejected before any network request is sent.
    Writes are planned by bay_core.overrides and applied elsewhere.
    """

    def __init__(self, *, timeout_s: float = 30.0, retries: int = 3):
        self.timeout_s = timeout_s
        self.retries = max(1, retries)

    def _headers(self, cfg: StoreConfig) -> dict[str, str]:
        return {
            "apikey": cfg.api_key,
            "Authorization": f"Bearer {cfg.api_key}",
            "Accept": "application/json",
        }

    def _request(
        self,
        *,
        operation: str,
        cfg: StoreConfig,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        op = READ_ONLY_OPERATIONS.get(operation)
        if op is None:
            raise ValueError(f"Operation '{operation}' is not allowed in read-only mode")

        url = f"{cfg.base_url.rstrip('/')}{op.path}"

        last_exc: Exception | None = None
        for attempt in range(self.retries):
            try:
                resp = httpx.request(
                    op.method,
                    url,
                    headers=self._headers(cfg),
                    params=params,
                    timeout=self.timeout_s,
                )
                if resp.status_code >= 500 and attempt < self.retries - 1:
                    logger.warning("%s returned %s, retrying", operation, resp.status_code)
                    sleep(2**attempt)
                    continue
                resp.raise_for_status()
                return resp
            except (httpx.TimeoutException, httpx.ConnectError) as exc:
                last_exc = exc
                if attempt < self.retries - 1:
                    sleep(2**attempt)
                    continue
                raise
        if last_exc:
            raise last_exc
        raise RuntimeError("request failed without an explicit exception")

    def _rows(self, operation: str, cfg: StoreConfig, params: dict[str, Any]) -> list[dict[str, Any]]:
        data = self._request(operation=operation, cfg=cfg, params=params).json()
        return data if isinstance(data, list) else []

    def list_bays(self, cfg: StoreConfig) -> list[dict[str, Any]]:
        return self._rows("bays", cfg, {"select": BAY_FIELDS, "order": "bay_number.asc"})

    def list_daily_claims(self, cfg: StoreConfig, claim_date: str) -> list[dict[str, Any]]:
        return self._rows("daily_claims", cfg, {"select": CLAIM_FIELDS, "claim_date": f"eq.{claim_date}"})

    def list_user_claims_between(
        self,
        cfg: StoreConfig,
        *,
        bay_id: str,
        user_id: str,
        start: str,
        end: str,
    ) -> list[dict[str, Any]]:
        """A user's claims on one bay for every date in start..end (inclusive)."""
        params = {
            "select": CLAIM_FIELDS,
            "bay_id": f"eq.{bay_id}",
            "user_id": f"eq.{user_id}",
            "and": f"(claim_date.gte.{start},claim_date.lte.{end})",
            "order": "claim_date.asc",
        }
        return self._rows("daily_claims", cfg, params)

    def list_permanent_assignments(
        self,
        cfg: StoreConfig,
        *,
        day_of_week: str | None = None,
    ) -> list[dict[str, Any]]:
        params = {"select": ASSIGNMENT_FIELDS}
        if day_of_week:
            params["or"] = f"(day_of_week.eq.{day_of_week},day_of_week.eq.{ALL_DAYS})"
        return self._rows("permanent_assignments", cfg, params)

    def list_users(self, cfg: StoreConfig, user_ids: Iterable[str]) -> list[dict[str, Any]]:
        ids = sorted({str(uid) for uid in user_ids if uid})
        if not ids:
            return []
        return self._rows("users", cfg, {"select": USER_FIELDS, "user_id": f"in.({','.join(ids)})"})

    def resolve_user_names(self, cfg: StoreConfig, user_ids: Iterable[str]) -> dict[str, str]:
        mapping: dict[str, str] = {}
        for row in self.list_users(cfg, user_ids):
            uid = row.get("user_id")
            name = row.get("name")
            if uid is None or not name:
                continue
            mapping[str(uid)] = str(name)
        return mapping

    def fetch_snapshot_payload(self, cfg: StoreConfig, *, today: str) -> dict[str, Any]:
        """All records needed to resolve both views for today.

        Assignments are fetched for every day so the schedule table can be
        built from the same snapshot as the board.
        """
        bays = self.list_bays(cfg)
        claims = self.list_daily_claims(cfg, today)
        assignments = self.list_permanent_assignments(cfg)
        users = self.list_users(cfg, referenced_user_ids(claims, assignments))
        return {
            "bays": bays,
            "daily_claims": claims,
            "permanent_assignments": assignments,
            "users": users,
        }
