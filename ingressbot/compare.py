from __future__ import annotations

import logging

from kubernetes.client import V1Ingress

logger = logging.getLogger(__name__)


def _covers(desired: dict[str, str] | None, current: dict[str, str] | None) -> bool:
    current = current or {}
    return all(current.get(k) == v for k, v in (desired or {}).items())


def ingresses_equal(desired: V1Ingress, current: V1Ingress) -> bool:
    """True when the live ingress already matches the desired one.

    Annotations and labels only need to contain the desired entries; extra
    keys on the live object are ignored. The spec comparison is structural and
    order-sensitive, so reordered paths count as a change.
    """
    name = current.metadata.name
    if desired.metadata.namespace != current.metadata.namespace:
        logger.debug("new namespace on ingress %s", name)
        return False
    if not _covers(desired.metadata.annotations, current.metadata.annotations):
        logger.debug("updated annotations on ingress %s", name)
        return False
    if not _covers(desired.metadata.labels, current.metadata.labels):
        logger.debug("updated labels on ingress %s", name)
        return False
    if desired.spec != current.spec:
        logger.debug("updated spec on ingress %s", name)
        return False
    return True
