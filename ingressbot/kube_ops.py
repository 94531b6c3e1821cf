from __future__ import annotations

import logging

from kubernetes.client import ApiException, V1Ingress, V1Service
from urllib3.exceptions import HTTPError

from .kube import KubeContext
from .settings import Settings

logger = logging.getLogger(__name__)

# Errors raised by the API client for a failed call
_TRANSPORT_ERRORS = (ApiException, HTTPError)


class TransportError(Exception):
    pass


def _ref(obj: V1Ingress | V1Service) -> str:
    return f"{obj.metadata.namespace}/{obj.metadata.name}"


class KubeOps:
    """Fetch and write operations against the cluster API.

    Lists carry the ownership label selector and the client timeout.
    Writes honor dry-run mode. Nothing is retried.
    """

    def __init__(self, kube: KubeContext, settings: Settings):
        self.kube = kube
        self.settings = settings

    def _write_kwargs(self) -> dict[str, str]:
        scope = self.settings.dry_run_scope
        return {"dry_run": scope} if scope else {}

    def list_services(self) -> list[V1Service]:
        try:
            res = self.kube.core.list_service_for_all_namespaces(
                label_selector=self.settings.label_selector,
                timeout_seconds=self.settings.client_timeout_s,
            )
        except _TRANSPORT_ERRORS as e:
            raise TransportError(f"error fetching services: {e}") from e
        return list(res.items or [])

    def list_ingresses(self) -> list[V1Ingress]:
        try:
            res = self.kube.networking.list_ingress_for_all_namespaces(
                label_selector=self.settings.label_selector,
                timeout_seconds=self.settings.client_timeout_s,
            )
        except _TRANSPORT_ERRORS as e:
            raise TransportError(f"error fetching ingresses: {e}") from e
        return list(res.items or [])

    def create_ingress(self, ingress: V1Ingress) -> V1Ingress:
        logger.info("creating ingress %s", _ref(ingress))
        try:
            return self.kube.networking.create_namespaced_ingress(
                ingress.metadata.namespace, ingress, **self._write_kwargs()
            )
        except _TRANSPORT_ERRORS as e:
            raise TransportError(f"error creating ingress {_ref(ingress)}: {e}") from e

    def update_ingress(self, ingress: V1Ingress) -> V1Ingress:
        """Replace the whole object; this is not a patch."""
        logger.info("updating ingress %s", _ref(ingress))
        try:
            return self.kube.networking.replace_namespaced_ingress(
                ingress.metadata.name, ingress.metadata.namespace, ingress, **self._write_kwargs()
            )
        except _TRANSPORT_ERRORS as e:
            raise TransportError(f"error updating ingress {_ref(ingress)}: {e}") from e

    def delete_ingress(self, ingress: V1Ingress) -> None:
        logger.info("deleting ingress %s", _ref(ingress))
        try:
            self.kube.networking.delete_namespaced_ingress(
                ingress.metadata.name, ingress.metadata.namespace, **self._write_kwargs()
            )
        except _TRANSPORT_ERRORS as e:
            raise TransportError(f"error deleting ingress {_ref(ingress)}: {e}") from e
