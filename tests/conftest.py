import copy
import json
import os
import sys
from dataclasses import replace
from types import SimpleNamespace

import pytest

# Ensure project root is importable when the package is not installed
_project_root = os.path.dirname(os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from kubernetes.client import (
    ApiClient,
    V1HTTPIngressPath,
    V1HTTPIngressRuleValue,
    V1Ingress,
    V1IngressBackend,
    V1IngressRule,
    V1IngressServiceBackend,
    V1IngressSpec,
    V1ObjectMeta,
    V1Service,
    V1ServiceBackendPort,
    V1ServicePort,
    V1ServiceSpec,
)

from ingressbot.kube_ops import TransportError
from ingressbot.settings import settings as base_settings


@pytest.fixture
def cfg():
    """Settings used across tests, independent of the caller's environment."""
    return replace(
        base_settings,
        check_interval_s=0,
        dry_run=True,
        enable_tls=True,
        resource_label_key="ptonini.github.io/ingress-bot",
        resource_label_value="true",
        host_annotation="ptonini.github.io/ingress-host",
        class_annotation="ptonini.github.io/ingress-class",
        path_annotation="ptonini.github.io/ingress-path",
        ingress_annotations={"test": "true"},
        ingress_labels={"test": "true"},
        path_type="ImplementationSpecific",
    )


@pytest.fixture
def make_service(cfg):
    def _make(name="service", namespace="default", host="www.example.com", cls="default", path=None, port=8080):
        annotations = {}
        if host is not None:
            annotations[cfg.host_annotation] = host
        if cls is not None:
            annotations[cfg.class_annotation] = cls
        if path is not None:
            annotations[cfg.path_annotation] = path
        return V1Service(
            metadata=V1ObjectMeta(
                name=name,
                namespace=namespace,
                annotations=annotations,
                labels={cfg.resource_label_key: cfg.resource_label_value},
            ),
            spec=V1ServiceSpec(ports=[V1ServicePort(port=port)] if port is not None else []),
        )

    return _make


@pytest.fixture
def make_path():
    def _make(service="service", path=None, port=8080):
        return V1HTTPIngressPath(
            path=path,
            path_type="ImplementationSpecific",
            backend=V1IngressBackend(
                service=V1IngressServiceBackend(name=service, port=V1ServiceBackendPort(number=port))
            ),
        )

    return _make


@pytest.fixture
def make_ingress(cfg):
    def _make(name="ingress", namespace="default", host="www.example.com", paths=None):
        return V1Ingress(
            metadata=V1ObjectMeta(
                name=name,
                namespace=namespace,
                annotations={},
                labels={cfg.resource_label_key: cfg.resource_label_value},
            ),
            spec=V1IngressSpec(
                rules=[V1IngressRule(host=host, http=V1HTTPIngressRuleValue(paths=list(paths or [])))],
            ),
        )

    return _make


_api_client = ApiClient()


def _drop_empty(value):
    """Drop empty strings and maps, like omitempty fields on the API server."""
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            v = _drop_empty(v)
            if v == "" or v == {}:
                continue
            out[k] = v
        return out
    if isinstance(value, list):
        return [_drop_empty(v) for v in value]
    return value


def as_served(ingress):
    """Return the ingress the way a later read from the API server would."""
    body = _drop_empty(_api_client.sanitize_for_serialization(ingress))
    return _api_client.deserialize(SimpleNamespace(data=json.dumps(body)), "V1Ingress")


@pytest.fixture
def served():
    return as_served


class FakeOps:
    """In-memory stand-in for KubeOps.

    Writes are recorded in `calls` and applied to `ingresses` so a follow-up
    pass sees them as live, in the shape the API server returns them.
    Names in `fail` make that operation raise.
    """

    def __init__(self, services=None, ingresses=None):
        self.services = list(services or [])
        self.ingresses = {i.metadata.name: i for i in (ingresses or [])}
        self.calls: list[tuple[str, str]] = []
        self.fail: set[str] = set()

    def _check(self, op):
        if op in self.fail:
            raise TransportError(f"fake error on {op}")

    def list_services(self):
        self._check("list_services")
        return [copy.deepcopy(s) for s in self.services]

    def list_ingresses(self):
        self._check("list_ingresses")
        return [copy.deepcopy(i) for i in self.ingresses.values()]

    def create_ingress(self, ingress):
        self._check("create")
        self.calls.append(("create", ingress.metadata.name))
        self.ingresses[ingress.metadata.name] = as_served(ingress)
        return ingress

    def update_ingress(self, ingress):
        self._check("update")
        self.calls.append(("update", ingress.metadata.name))
        self.ingresses[ingress.metadata.name] = as_served(ingress)
        return ingress

    def delete_ingress(self, ingress):
        self._check("delete")
        self.calls.append(("delete", ingress.metadata.name))
        self.ingresses.pop(ingress.metadata.name, None)


@pytest.fixture
def fake_ops():
    return FakeOps()
