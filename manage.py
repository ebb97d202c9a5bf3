#!/usr/bin/env python3
"""
Stockflow management CLI.

Usage:
    python manage.py start       Start the server (migrates on startup)
    python manage.py stop        Graceful shutdown
    python manage.py status      Check if server is running
    python manage.py migrate     Apply pending database migrations
    python manage.py seed        Load directory fixtures for local runs
"""

import argparse
import asyncio
import json
import os
import signal
import socket
import subprocess
import sys
import time
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent
PID_FILE = ROOT_DIR / ".stockflow.pid"

# Minimal organisation: the central warehouse and one receiving unit
DEFAULT_FIXTURES = {
    "units": [
        {"id": "warehouse-central", "name": "Central Warehouse"},
        {"id": "unit-1", "name": "Unit 1"},
    ],
    "users": [
        {"id": "u-storage", "name": "Storage Clerk", "role": "warehouse",
         "primary_unit_id": "warehouse-central", "warehouse_type": "storage"},
        {"id": "u-driver", "name": "Driver", "role": "warehouse",
         "primary_unit_id": "warehouse-central", "warehouse_type": "delivery"},
        {"id": "u-controller", "name": "Unit Controller", "role": "controller",
         "primary_unit_id": "unit-1"},
        {"id": "u-requester", "name": "Requester", "role": "requester",
         "primary_unit_id": "unit-1"},
        {"id": "u-designer", "name": "Designer", "role": "designer"},
        {"id": "u-admin", "name": "Administrator", "role": "admin"},
    ],
    "items": [
        {"id": "item-paper", "name": "Paper A4", "default_minimum_quantity": 10},
        {"id": "item-desk", "name": "Desk", "is_furniture": True},
    ],
}


def _read_pid() -> int | None:
    """Read PID from the pid file, return None if missing or stale."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
    except (ValueError, OSError):
        return None
    if _is_pid_alive(pid):
        return pid
    PID_FILE.unlink(missing_ok=True)
    return None


def _is_pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
        return True
    except OSError:
        return False


def _is_port_free(port: int) -> bool:
    """Check if a port is available for binding."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", port))
        return True
    except OSError:
        return False


def _migrate(db_path: Path | None = None) -> bool:
    from src.infrastructure.storage.sqlite.migrations.migrator import run_migrations

    results = asyncio.run(run_migrations(db_path))
    if not results:
        print("Database is up to date")
    for result in results:
        status = "SUCCESS" if result.success else "FAILED"
        print(f"[{status}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"         Error: {result.error}")
    return all(r.success for r in results)


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations."""
    if not _migrate(args.db_path):
        sys.exit(1)


async def _seed(fixtures: dict) -> dict[str, int]:
    from src.core.entities.directory import Item, Unit, User
    from src.infrastructure.storage.sqlite import close_pool, get_directory

    directory = await get_directory()
    try:
        for unit in fixtures.get("units", []):
            await directory.upsert_unit(Unit(**unit))
        for user in fixtures.get("users", []):
            await directory.upsert_user(User(**user))
        for item in fixtures.get("items", []):
            await directory.upsert_item(Item(**item))
    finally:
        await close_pool()
    return {key: len(fixtures.get(key, [])) for key in ("units", "users", "items")}


def cmd_seed(args: argparse.Namespace) -> None:
    """Load directory fixtures (units, users, items)."""
    fixtures = DEFAULT_FIXTURES
    if args.file:
        fixtures = json.loads(Path(args.file).read_text(encoding="utf-8"))

    if not _migrate():
        sys.exit(1)
    counts = asyncio.run(_seed(fixtures))
    print(
        f"Seeded {counts['units']} units, {counts['users']} users, {counts['items']} items."
    )


def cmd_start(args: argparse.Namespace) -> None:
    """Start the server; the app applies migrations on startup."""
    existing_pid = _read_pid()
    if existing_pid is not None:
        print(f"Server already running (PID {existing_pid}). Use 'stop' first.")
        sys.exit(1)

    if not _is_port_free(args.port):
        print(f"Port {args.port} is in use.")
        sys.exit(1)

    uvicorn_cmd = [
        sys.executable, "-m", "uvicorn",
        "src.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]
    if args.reload:
        uvicorn_cmd.append("--reload")

    print(f"Starting server on {args.host}:{args.port}...")
    proc = subprocess.Popen(uvicorn_cmd, cwd=str(ROOT_DIR))

    PID_FILE.write_text(str(proc.pid))
    print(f"Server started (PID {proc.pid}).")
    print(f"  API:      http://{args.host}:{args.port}/api")
    print(f"  PID file: {PID_FILE}")


def cmd_stop(args: argparse.Namespace) -> None:
    """Stop the running server."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
        return

    print(f"Stopping server (PID {pid})...")
    try:
        os.kill(pid, signal.SIGTERM)
    except OSError:
        pass
    for _ in range(30):
        if not _is_pid_alive(pid):
            break
        time.sleep(0.1)
    else:
        print("Warning: Process did not exit within 3 seconds.")

    PID_FILE.unlink(missing_ok=True)
    print("Server stopped." if not _is_pid_alive(pid) else "Warning: Server may still be running.")


def cmd_status(args: argparse.Namespace) -> None:
    """Report whether the server is running."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
    else:
        print(f"Server is running (PID {pid}).")


def main() -> None:
    parser = argparse.ArgumentParser(description="Stockflow management CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    start = sub.add_parser("start", help="Start the server")
    start.add_argument("--host", default="127.0.0.1")
    start.add_argument("--port", type=int, default=8000)
    start.add_argument("--reload", action="store_true", help="Reload on code changes")
    start.set_defaults(func=cmd_start)

    sub.add_parser("stop", help="Stop the server").set_defaults(func=cmd_stop)
    sub.add_parser("status", help="Check if server is running").set_defaults(func=cmd_status)

    migrate = sub.add_parser("migrate", help="Apply database migrations")
    migrate.add_argument("--db-path", type=Path, default=None)
    migrate.set_defaults(func=cmd_migrate)

    seed = sub.add_parser("seed", help="Load directory fixtures")
    seed.add_argument("--file", help="JSON file with units, users and items")
    seed.set_defaults(func=cmd_seed)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
