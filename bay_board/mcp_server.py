"""bay-board MCP server.

Exposes tools for record store sync, snapshot persistence, the live bay
board, the assignments schedule, anomaly checks, override planning and
XLSX export. All record store access is read-only; override tools return
change sets for the caller to apply.
"""
from __future__ import annotations

import argparse
import logging
import os
from typing import Any

from mcp.server.fastmcp import FastMCP

from bay_core.anomalies import find_anomalies, summarize_anomalies
from bay_core.dates import availability_window
from bay_core.io import build_board_payload, build_schedule_payload, render_xlsx
from bay_core.overrides import (
    plan_make_available as _plan_make_available,
    plan_reservation as _plan_reservation,
    plan_revocation as _plan_revocation,
)
from bay_core.records import ResolvedBay
from bay_core.resolver import resolve

from .config import get_store_config, load_env, runtime_config
from .ingest import SnapshotBuildInput, build_snapshot
from .storage import (
    export_path,
    list_snapshots as _list_snapshots,
    load_snapshot as _load_snapshot,
    save_export_metadata,
    save_snapshot as _save_snapshot,
)
from .store_client import ReadOnlyStoreClient
from .utils import ensure_date, now_utc_iso, today_iso

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "bay-board",
    host=os.getenv("HOST", "127.0.0.1"),
    port=int(os.getenv("PORT", "8000")),
    instructions=(
        "Parking bay availability for a shared car park. "
        "Syncs bays, permanent assignments and daily claims from the record store, "
        "resolves today's board and the weekly assignments table, reports data "
        "anomalies and plans reservations and cancellations as change sets. "
        "All record store access is read-only."
    ),
)

_ENV_FILE: str | None = None
_CLIENT: ReadOnlyStoreClient | None = None


def _client() -> ReadOnlyStoreClient:
    global _CLIENT
    if _CLIENT is None:
        load_env(_ENV_FILE or os.getenv("BAY_BOARD_ENV_FILE"))
        _CLIENT = ReadOnlyStoreClient()
    return _CLIENT


def _runtime():
    load_env(_ENV_FILE or os.getenv("BAY_BOARD_ENV_FILE"))
    return runtime_config()


def _artifact_root():
    return _runtime().artifact_root


def _resolve_snapshot(snapshot: dict[str, Any], mode: str, current_user_id: str | None = None):
    return resolve(
        snapshot.get("bays"),
        snapshot.get("daily_claims"),
        snapshot.get("permanent_assignments"),
        today=snapshot["date"],
        day_of_week=snapshot.get("day_of_week"),
        current_user_id=current_user_id,
        mode=mode,
        user_names=snapshot.get("user_names"),
    )


def _find_bay(board: list[ResolvedBay], bay_id: str) -> ResolvedBay:
    for bay in board:
        if bay.bay_id == str(bay_id):
            return bay
    raise ValueError(f"Bay '{bay_id}' not found in snapshot")


# -- Data sync --

@mcp.tool()
def sync_snapshot(today: str | None = None, current_user_id: str | None = None) -> dict[str, Any]:
    """Fetch bays, claims, assignments and user names and store them as a local snapshot.

    today defaults to the current date in BAY_BOARD_TIMEZONE.
    Returns the snapshot manifest with snapshot_id, counts and file path.
    """
    runtime = _runtime()
    day = ensure_date(today) if today else today_iso(runtime.timezone)
    store = get_store_config()
    raw_payload = _client().fetch_snapshot_payload(store, today=day)
    snapshot = build_snapshot(
        SnapshotBuildInput(today=day, payload=raw_payload, current_user_id=current_user_id)
    )
    target = _save_snapshot(runtime.artifact_root, snapshot, raw_payload)
    return {
        "snapshot_id": snapshot["snapshot_id"],
        "date": snapshot["date"],
        "day_of_week": snapshot["day_of_week"],
        "counts": snapshot["metadata"]["counts"],
        "anomalies": snapshot["metadata"]["anomalies"],
        "path": str(target),
    }


# -- Snapshot CRUD --

@mcp.tool()
def list_snapshots(limit: int = 20) -> list[dict[str, Any]]:
    """List local snapshot manifests, newest first."""
    return _list_snapshots(_artifact_root(), limit=limit)


@mcp.tool()
def load_snapshot(snapshot_id: str | None = None) -> dict[str, Any]:
    """Load a full snapshot JSON by ID (or latest if omitted)."""
    return _load_snapshot(_artifact_root(), snapshot_id=snapshot_id)


# -- Views --

@mcp.tool()
def bay_board(snapshot_id: str | None = None, current_user_id: str | None = None) -> dict[str, Any]:
    """Today's status of every bay: Available, Reserved or Maintenance.

    current_user_id marks the bays held by that user (reserved_by_you);
    it defaults to the user recorded at sync time.
    """
    snapshot = _load_snapshot(_artifact_root(), snapshot_id=snapshot_id)
    user = current_user_id or snapshot.get("current_user_id")
    rows = _resolve_snapshot(snapshot, "grid", user)
    payload = build_board_payload(
        rows, today=snapshot["date"], day_of_week=snapshot["day_of_week"], current_user_id=user
    )
    payload["snapshot_id"] = snapshot["snapshot_id"]
    return payload


@mcp.tool()
def bay_schedule(snapshot_id: str | None = None) -> dict[str, Any]:
    """The assignments table: one row per permanent assignment and per daily claim."""
    snapshot = _load_snapshot(_artifact_root(), snapshot_id=snapshot_id)
    rows = _resolve_snapshot(snapshot, "schedule")
    payload = build_schedule_payload(rows, today=snapshot["date"], day_of_week=snapshot["day_of_week"])
    payload["snapshot_id"] = snapshot["snapshot_id"]
    return payload


@mcp.tool()
def check_snapshot(snapshot_id: str | None = None) -> dict[str, Any]:
    """List records the resolver skips, tie-breaks or ignores in a snapshot."""
    snapshot = _load_snapshot(_artifact_root(), snapshot_id=snapshot_id)
    anomalies = find_anomalies(
        snapshot.get("bays"),
        snapshot.get("daily_claims"),
        snapshot.get("permanent_assignments"),
        today=snapshot["date"],
    )
    return {
        "snapshot_id": snapshot["snapshot_id"],
        "summary": summarize_anomalies(anomalies),
        "anomalies": anomalies,
    }


# -- Override planning --

@mcp.tool()
def plan_make_available(
    bay_id: str,
    user_id: str,
    option: str = "today",
    start: str | None = None,
    end: str | None = None,
    actor_id: str | None = None,
    snapshot_id: str | None = None,
) -> dict[str, Any]:
    """Plan releasing a permanently assigned bay for today, tomorrow or a custom range.

    option is "today", "tomorrow" or "custom" (start, optionally end).
    The snapshot only holds claims for its own date, so a window reaching
    other dates reads the user's existing claims for the window from the
    record store. claims_source says which was used.
    """
    snapshot = _load_snapshot(_artifact_root(), snapshot_id=snapshot_id)
    window = availability_window(option, snapshot["date"], start, end)
    if window == (snapshot["date"], snapshot["date"]):
        claims = snapshot.get("daily_claims") or []
        claims_source = "snapshot"
    else:
        claims = _client().list_user_claims_between(
            get_store_config(), bay_id=bay_id, user_id=user_id, start=window[0], end=window[1]
        )
        claims_source = "store"
    changes = _plan_make_available(
        bay_id,
        user_id,
        snapshot.get("permanent_assignments") or [],
        claims,
        window,
        actor_id=actor_id,
    )
    return {
        "snapshot_id": snapshot["snapshot_id"],
        "window": {"from": window[0], "to": window[1]},
        "claims_source": claims_source,
        "changes": changes,
    }


@mcp.tool()
def plan_reservation(bay_id: str, user_id: str, snapshot_id: str | None = None) -> dict[str, Any]:
    """Plan a daily claim on an Available bay for the snapshot's date."""
    snapshot = _load_snapshot(_artifact_root(), snapshot_id=snapshot_id)
    bay = _find_bay(_resolve_snapshot(snapshot, "grid", user_id), bay_id)
    changes = _plan_reservation(bay, user_id, snapshot["date"])
    return {"snapshot_id": snapshot["snapshot_id"], "bay": bay.to_dict(), "changes": changes}


@mcp.tool()
def plan_revocation(bay_id: str, actor_id: str, snapshot_id: str | None = None) -> dict[str, Any]:
    """Plan revoking today's holder of a Reserved bay."""
    snapshot = _load_snapshot(_artifact_root(), snapshot_id=snapshot_id)
    bay = _find_bay(_resolve_snapshot(snapshot, "grid"), bay_id)
    changes = _plan_revocation(
        bay, snapshot.get("daily_claims") or [], today=snapshot["date"], actor_id=actor_id
    )
    return {"snapshot_id": snapshot["snapshot_id"], "bay": bay.to_dict(), "changes": changes}


# -- Export --

@mcp.tool()
def export_xlsx(snapshot_id: str | None = None, include_anomalies: bool = True) -> dict[str, Any]:
    """Write the board and the assignments table of a snapshot to an XLSX workbook."""
    root = _artifact_root()
    snapshot = _load_snapshot(root, snapshot_id=snapshot_id)
    sid = snapshot["snapshot_id"]
    board = _resolve_snapshot(snapshot, "grid", snapshot.get("current_user_id"))
    schedule = _resolve_snapshot(snapshot, "schedule")
    anomalies = None
    if include_anomalies:
        anomalies = find_anomalies(
            snapshot.get("bays"),
            snapshot.get("daily_claims"),
            snapshot.get("permanent_assignments"),
            today=snapshot["date"],
        )
    path = render_xlsx(
        board, schedule, export_path(root, sid), anomalies=anomalies, title=f"Bays {snapshot['date']}"
    )
    save_export_metadata(
        path,
        {
            "snapshot_id": sid,
            "date": snapshot["date"],
            "generated_at": now_utc_iso(),
            "bays": len(board),
            "schedule_rows": len(schedule),
            "anomalies": len(anomalies or []),
        },
    )
    logger.info("Exported snapshot %s to %s", sid, path)
    return {"snapshot_id": sid, "path": str(path)}


# -- Server entrypoints --

async def _run_http() -> None:
    import uvicorn
    from starlette.middleware.base import BaseHTTPMiddleware
    from starlette.responses import JSONResponse, PlainTextResponse
    from starlette.routing import Route

    api_key = os.getenv("MCP_API_KEY")

    class BearerAuth(BaseHTTPMiddleware):
        async def dispatch(self, request, call_next):
            if request.url.path == "/health":
                return await call_next(request)
            auth = request.headers.get("authorization", "")
            if not auth.startswith("Bearer ") or auth[7:] != api_key:
                return JSONResponse({"error": "unauthorized"}, status_code=401)
            return await call_next(request)

    starlette_app = mcp.streamable_http_app()

    if api_key:
        starlette_app.add_middleware(BearerAuth)

    starlette_app.routes.append(
        Route("/health", lambda r: PlainTextResponse("ok"))
    )

    config = uvicorn.Config(
        starlette_app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        log_level="info",
    )
    await uvicorn.Server(config).serve()


def main() -> None:
    global _ENV_FILE

    parser = argparse.ArgumentParser(description="Run bay-board MCP server")
    parser.add_argument("--env-file", default=None, help="Path to .env file")
    parser.add_argument(
        "--transport",
        default=None,
        choices=["stdio", "sse", "streamable-http"],
        help="MCP transport (default: streamable-http when PORT is set, else stdio)",
    )
    parser.add_argument("--log-level", default="WARNING", help="Root log level")
    args = parser.parse_args()
    _ENV_FILE = args.env_file
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    transport = args.transport
    if transport is None:
        transport = "streamable-http" if os.getenv("PORT") else "stdio"

    if transport == "streamable-http":
        import anyio
        anyio.run(_run_http)
    else:
        mcp.run(transport=transport)


if __name__ == "__main__":
    main()
