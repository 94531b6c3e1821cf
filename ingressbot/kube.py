from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from .settings import Settings

logger = logging.getLogger(__name__)

_lock = Lock()


class KubeConfigError(Exception):
    pass


@dataclass(frozen=True)
class KubeContext:
    """API handles shared by everything that talks to the cluster."""

    core: client.CoreV1Api
    networking: client.NetworkingV1Api


def _load_api_client(settings: Settings) -> client.ApiClient:
    try:
        cfg = client.Configuration()
        config.load_incluster_config(client_configuration=cfg)
        logger.debug("using in-cluster configuration")
        return client.ApiClient(cfg)
    except ConfigException:
        pass

    path = settings.kubeconfig_path or None
    try:
        api_client = config.new_client_from_config(config_file=path)
    except (ConfigException, OSError) as e:
        raise KubeConfigError(f"error loading kubernetes config: {e}") from e
    logger.debug("using kubeconfig %s", path or "from default location")
    return api_client


def load_kube_context(settings: Settings) -> KubeContext:
    """Build the API handles once.

    Guarded by a lock so that concurrent initializers do not race.
    """
    with _lock:
        api_client = _load_api_client(settings)
        return KubeContext(
            core=client.CoreV1Api(api_client),
            networking=client.NetworkingV1Api(api_client),
        )
