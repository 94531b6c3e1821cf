from __future__ import annotations

import json
import os
from dataclasses import dataclass, field


def _env_str(name: str, default: str = "") -> str:
    return os.getenv(name, default)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def parse_string_map(raw: str | None) -> dict[str, str] | None:
    """Parse a JSON object of string values, e.g. '{"team": "web"}'.

    Returns None when unset or not a JSON object.
    """
    if raw is None or not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return {str(k): str(v) for k, v in data.items()}


def _env_map(name: str) -> dict[str, str] | None:
    return parse_string_map(os.getenv(name))


def _invalid_env_maps(*names: str) -> tuple[str, ...]:
    """Names of map variables that are set but could not be parsed."""
    return tuple(n for n in names if os.getenv(n, "").strip() and _env_map(n) is None)


# Read once at import like every other field; each Settings gets its own copy
_INGRESS_ANNOTATIONS = _env_map("INGRESS_ANNOTATIONS")
_INGRESS_LABELS = _env_map("INGRESS_LABELS")


def _copy_map(m: dict[str, str] | None) -> dict[str, str] | None:
    return dict(m) if m is not None else None


@dataclass(frozen=True)
class Settings:
    # Core
    log_level: str = _env_str("LOG_LEVEL", "info")
    check_interval_s: int = _env_int("CHECK_INTERVAL", 30)
    dry_run: bool = _env_bool("DRY_RUN", False)
    client_timeout_s: int = _env_int("CLIENT_TIMEOUT", 60)
    kubeconfig_path: str = _env_str("KUBECONFIG_PATH")

    # Ownership label put on every managed ingress; its key is also the list selector
    resource_label_key: str = _env_str("RESOURCE_LABEL_KEY", "ptonini.github.io/ingress-bot")
    resource_label_value: str = _env_str("RESOURCE_LABEL_VALUE", "true")

    # Service annotations
    host_annotation: str = _env_str("INGRESS_HOST_ANNOTATION", "ptonini.github.io/ingress-host")
    class_annotation: str = _env_str("INGRESS_CLASS_ANNOTATION", "ptonini.github.io/ingress-class")
    path_annotation: str = _env_str("INGRESS_PATH_ANNOTATION", "ptonini.github.io/ingress-path")

    # Generated ingresses
    enable_tls: bool = _env_bool("INGRESS_ENABLE_TLS", True)
    ingress_annotations: dict[str, str] | None = field(default_factory=lambda: _copy_map(_INGRESS_ANNOTATIONS))
    ingress_labels: dict[str, str] | None = field(default_factory=lambda: _copy_map(_INGRESS_LABELS))
    invalid_maps: tuple[str, ...] = _invalid_env_maps("INGRESS_ANNOTATIONS", "INGRESS_LABELS")
    path_type: str = _env_str("INGRESS_PATH_TYPE", "ImplementationSpecific")

    # Status API
    api_enabled: bool = _env_bool("API_ENABLED", True)
    api_host: str = _env_str("API_HOST", "0.0.0.0")
    api_port: int = _env_int("API_PORT", 8080)

    @property
    def dry_run_scope(self) -> str | None:
        """Value for the API server's dryRun query parameter."""
        return "All" if self.dry_run else None

    @property
    def label_selector(self) -> str:
        return self.resource_label_key


settings = Settings()
