from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from threading import Event

import requests
import uvicorn

from .api import create_app
from .desired import ConflictError
from .kube import KubeConfigError, load_kube_context
from .kube_ops import KubeOps, TransportError
from .logs import setup_logging
from .reconciler import Reconciler
from .runtime import RuntimeState
from .settings import settings

logger = logging.getLogger("ingressbot")


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _warn_bad_maps() -> None:
    for name in settings.invalid_maps:
        logger.warning("ignoring %s: not a JSON object of strings", name)


def _build_reconciler(runtime: RuntimeState) -> Reconciler:
    kube = load_kube_context(settings)
    return Reconciler(KubeOps(kube, settings), settings, runtime)


def cmd_run() -> int:
    runtime = RuntimeState()
    try:
        reconciler = _build_reconciler(runtime)
    except KubeConfigError as e:
        logger.critical(str(e))
        return 1

    if settings.dry_run:
        logger.info("dry run enabled, writes are validated but not persisted")
    reconciler.start()

    if settings.api_enabled:
        # uvicorn handles SIGTERM/SIGINT and returns once it shuts down
        uvicorn.run(create_app(runtime, settings), host=settings.api_host, port=settings.api_port, log_level="warning")
    else:
        shutdown = Event()
        signal.signal(signal.SIGTERM, lambda *_: shutdown.set())
        signal.signal(signal.SIGINT, lambda *_: shutdown.set())
        shutdown.wait()

    logger.info("stopping service")
    reconciler.stop()
    return 0


def cmd_once() -> int:
    runtime = RuntimeState()
    try:
        reconciler = _build_reconciler(runtime)
        result = reconciler.reconcile()
    except (KubeConfigError, TransportError, ConflictError) as e:
        logger.error(str(e))
        return 1
    _print(result.to_dict())
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="ingress-bot", description="Derive ingresses from annotated services")
    p.add_argument("--api", default=f"http://localhost:{settings.api_port}", help="Status API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("run", help="Run the reconciliation loop")
    sub.add_parser("once", help="Run a single reconciliation pass and exit")
    sub.add_parser("status", help="Show loop status of a running instance")
    s_ev = sub.add_parser("events", help="Show recent events of a running instance")
    s_ev.add_argument("--limit", type=int, default=20)

    args = p.parse_args(argv)
    base = args.api.rstrip("/")

    if args.cmd in {"run", "once"}:
        setup_logging(settings.log_level)
        _warn_bad_maps()
        logger.info("starting service")
        return cmd_run() if args.cmd == "run" else cmd_once()

    if args.cmd == "status":
        r = requests.get(f"{base}/status", timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "events":
        r = requests.get(f"{base}/events", params={"limit": args.limit}, timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
