from __future__ import annotations

import logging
from threading import Event, Thread

from kubernetes.client import V1Ingress

from .compare import ingresses_equal
from .desired import ConflictError, build_desired_ingresses
from .kube_ops import KubeOps, TransportError
from .runtime import PassResult, RuntimeState
from .settings import Settings

logger = logging.getLogger(__name__)


class Reconciler:
    """Keeps managed ingresses in line with service annotations.

    One thread drives every pass; passes never overlap. The first failed pass
    stops the loop for good.
    """

    def __init__(self, ops: KubeOps, settings: Settings, runtime: RuntimeState | None = None):
        self.ops = ops
        self.settings = settings
        self.runtime = runtime or RuntimeState()
        self._stop = Event()
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._stop.clear()
        self._thr = Thread(target=self.run, name="reconciler", daemon=True)
        self._thr.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thr:
            self._thr.join(timeout)

    def is_alive(self) -> bool:
        return bool(self._thr and self._thr.is_alive())

    def run(self) -> None:
        logger.info("starting reconciliation loop")
        self.runtime.set_loop_state("running")
        self.runtime.log_event("INFO", "Reconciliation loop started")
        while True:
            try:
                self.reconcile()
            except (TransportError, ConflictError) as e:
                self._fail(str(e))
                return
            except Exception as e:
                logger.exception("unexpected error during reconciliation")
                self._fail(f"{type(e).__name__}: {e}")
                return

            interval = self.settings.check_interval_s
            if interval <= 0 or self._stop.wait(interval):
                break
        logger.info("reconciliation loop stopped")
        self.runtime.set_loop_state("stopped")
        self.runtime.log_event("INFO", "Reconciliation loop stopped")

    def _fail(self, message: str) -> None:
        logger.error(message)
        self.runtime.set_loop_state("failed")
        self.runtime.log_event("ERROR", f"Reconciliation loop terminated: {message}")

    def reconcile(self) -> PassResult:
        """Run one fetch, build, diff and apply pass.

        Raises TransportError or ConflictError. Writes done before a failure
        are not rolled back and stay in the runtime state next to the error.
        """
        self.runtime.pass_started()
        result = PassResult()
        try:
            self._reconcile(result)
        except Exception as e:
            self.runtime.pass_failed(str(e), result)
            raise
        self.runtime.pass_succeeded(result)
        if result.writes:
            self.runtime.log_event(
                "INFO",
                f"Pass applied {len(result.created)} create(s), {len(result.updated)} update(s), "
                f"{len(result.deleted)} delete(s)",
            )
        return result

    def _reconcile(self, result: PassResult) -> None:
        services = self.ops.list_services()
        current: dict[str, V1Ingress] = {i.metadata.name: i for i in self.ops.list_ingresses()}
        desired = build_desired_ingresses(services, self.settings)

        # Remove ingresses no service asks for
        for name in sorted(current):
            if name not in desired:
                self.ops.delete_ingress(current[name])
                result.deleted.append(name)

        for name, ingress in desired.items():
            live = current.get(name)
            if live is None:
                self.ops.create_ingress(ingress)
                result.created.append(name)
            elif not ingresses_equal(ingress, live):
                self.ops.update_ingress(ingress)
                result.updated.append(name)
            else:
                result.unchanged.append(name)
