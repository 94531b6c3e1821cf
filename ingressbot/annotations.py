from __future__ import annotations

from dataclasses import dataclass

from kubernetes.client import V1Service

from .settings import Settings


def grouping_key(host: str) -> str:
    """Ingress name derived from a host, e.g. www.example.com -> www-example-com."""
    return host.replace(".", "-")


@dataclass(frozen=True)
class ServiceIntent:
    name: str
    namespace: str
    hosts: list[str]
    ingress_class: str
    path: str
    port: int | None
    grouping_key: str


def extract_intent(service: V1Service, settings: Settings) -> ServiceIntent:
    """Read the routing declaration from a service's annotations.

    Hosts are split on ',' as-is. A missing host annotation gives a single
    empty host and an empty grouping key; nothing is validated here.
    """
    meta = service.metadata
    annotations = meta.annotations or {}
    hosts = annotations.get(settings.host_annotation, "").split(",")
    ports = (service.spec.ports if service.spec else None) or []
    return ServiceIntent(
        name=meta.name,
        namespace=meta.namespace,
        hosts=hosts,
        ingress_class=annotations.get(settings.class_annotation, ""),
        path=annotations.get(settings.path_annotation, ""),
        port=ports[0].port if ports else None,
        grouping_key=grouping_key(hosts[0]),
    )
