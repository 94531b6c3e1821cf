from __future__ import annotations

import logging
from typing import Iterable

from kubernetes.client import (
    V1HTTPIngressPath,
    V1HTTPIngressRuleValue,
    V1Ingress,
    V1IngressBackend,
    V1IngressRule,
    V1IngressServiceBackend,
    V1IngressSpec,
    V1IngressTLS,
    V1ObjectMeta,
    V1Service,
    V1ServiceBackendPort,
)

from .annotations import ServiceIntent, extract_intent
from .settings import Settings

logger = logging.getLogger(__name__)


class ConflictError(Exception):
    pass


def build_ingress(name: str, namespace: str, hosts: list[str], ingress_class: str, settings: Settings) -> V1Ingress:
    """Create an ingress with one empty rule per host."""
    # The API server omits empty strings; store them as None so live objects compare equal
    rules = [V1IngressRule(host=h or None, http=V1HTTPIngressRuleValue(paths=[])) for h in hosts]

    annotations: dict[str, str] = {}
    if settings.ingress_annotations:
        annotations.update(settings.ingress_annotations)

    labels = {settings.resource_label_key: settings.resource_label_value}
    if settings.ingress_labels:
        labels.update(settings.ingress_labels)

    # None rather than [] so that it matches what the API server returns
    tls = None
    if settings.enable_tls:
        tls = [V1IngressTLS(hosts=list(hosts), secret_name=f"{name}-tls")]

    return V1Ingress(
        api_version="networking.k8s.io/v1",
        kind="Ingress",
        metadata=V1ObjectMeta(name=name, namespace=namespace, annotations=annotations, labels=labels),
        spec=V1IngressSpec(ingress_class_name=ingress_class or None, tls=tls, rules=rules),
    )


def attach_service(ingress: V1Ingress, intent: ServiceIntent, settings: Settings) -> None:
    """Upsert the service's path binding into the first rule.

    An existing binding for the same service is dropped, and the new one goes
    to the end of the list. Other rules are left alone.
    """
    rule = ingress.spec.rules[0]
    paths = rule.http.paths
    for i, p in enumerate(paths):
        if p.backend.service.name == intent.name:
            del paths[i]
            break
    paths.append(
        V1HTTPIngressPath(
            path=intent.path or None,
            path_type=settings.path_type,
            backend=V1IngressBackend(
                service=V1IngressServiceBackend(
                    name=intent.name,
                    port=V1ServiceBackendPort(number=intent.port),
                )
            ),
        )
    )


def _ordered(services: Iterable[V1Service]) -> list[V1Service]:
    return sorted(services, key=lambda s: (s.metadata.namespace or "", s.metadata.name or ""))


def build_desired_ingresses(services: Iterable[V1Service], settings: Settings) -> dict[str, V1Ingress]:
    """Fold services into ingresses keyed by grouping key.

    Services are visited in (namespace, name) order. Raises ConflictError when
    two services claim the same ingress with a different namespace, or when both
    name a class and the classes differ. No partial result is returned.
    """
    ingresses: dict[str, V1Ingress] = {}
    for s in _ordered(services):
        intent = extract_intent(s, settings)
        name = intent.grouping_key
        existing = ingresses.get(name)
        if existing is not None:
            meta = existing.metadata
            if meta.namespace != intent.namespace:
                raise ConflictError(
                    f"service {intent.namespace}/{intent.name} declaring host for ingress {meta.namespace}/{meta.name}"
                )
            # a service with no class joins whatever class the ingress already has
            cls = existing.spec.ingress_class_name
            if cls is not None and intent.ingress_class and cls != intent.ingress_class:
                raise ConflictError(
                    f"service {intent.namespace}/{intent.name} declaring class {intent.ingress_class} "
                    f"for ingress {meta.namespace}/{meta.name}"
                )
        else:
            logger.debug("adding ingress %s/%s to desired list", intent.namespace, name)
            ingresses[name] = build_ingress(name, intent.namespace, intent.hosts, intent.ingress_class, settings)
        logger.debug("adding service %s to ingress %s/%s", intent.name, intent.namespace, name)
        attach_service(ingresses[name], intent, settings)
    return ingresses
