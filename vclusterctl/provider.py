"""
Provider-level configuration: the `kubernetes` block.

The block is passed through as-is. The only thing vclusterctl does with it
is point the vcluster process at the configured kubeconfig.
"""
import logging
import os
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .models import WARNING, Diagnostic
from .schema import KUBERNETES_FIELDS, KUBERNETES_SCHEMA, validate_block
from .utils import redact_sensitive_data
from .utils.kube import list_context_names, resolve_kubeconfig_paths

logger = logging.getLogger("vclusterctl.provider")

DEPRECATED_EXEC_API_VERSION = "client.authentication.k8s.io/v1alpha1"

TRUE_VALUES = ("1", "t", "true", "y", "yes", "on")

@dataclass
class ExecConfig:
    """External credential plugin settings."""
    api_version: str
    command: str
    env: Dict[str, str] = field(default_factory=dict)
    args: List[str] = field(default_factory=list)

@dataclass
class KubernetesConfig:
    host: str = ""
    username: str = ""
    password: str = ""
    insecure: bool = False
    client_certificate: str = ""
    client_key: str = ""
    cluster_ca_certificate: str = ""
    config_paths: List[str] = field(default_factory=list)
    config_path: Optional[str] = None
    config_context: str = ""
    config_context_auth_info: str = ""
    config_context_cluster: str = ""
    token: str = ""
    proxy_url: str = ""
    exec: Optional[ExecConfig] = None

    def kubeconfig_paths(self) -> List[str]:
        return resolve_kubeconfig_paths(self.config_path, self.config_paths)

    def to_dict(self, redact: bool = True) -> Dict[str, Any]:
        data = asdict(self)
        return redact_sensitive_data(data) if redact else data

@dataclass
class Meta:
    """What every lifecycle operation gets from the provider."""
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)

    def process_env(self, base: Optional[Mapping[str, str]] = None) -> Optional[Dict[str, str]]:
        """Environment for the vcluster process, or None to inherit ours unchanged."""
        paths = self.kubernetes.kubeconfig_paths()
        if not paths:
            return None
        env = dict(os.environ if base is None else base)
        env["KUBECONFIG"] = os.pathsep.join(paths)
        return env

def _env_value(spec_type: str, raw: str) -> Any:
    if spec_type == "boolean":
        return raw.strip().lower() in TRUE_VALUES
    if spec_type == "array":
        return [p for p in raw.split(os.pathsep) if p]
    return raw

def apply_env_defaults(block: Mapping[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """Fill fields missing from `block` from their environment variables."""
    resolved = dict(block)
    for name, spec in KUBERNETES_FIELDS.items():
        if resolved.get(name) is not None:
            continue
        if spec.env and environ.get(spec.env):
            resolved[name] = _env_value(spec.type, environ[spec.env])
        elif spec.default is not None:
            resolved[name] = spec.default
    # config_path from the environment never overrides explicit config_paths
    if block.get("config_paths") and "config_path" not in block:
        resolved.pop("config_path", None)
    return resolved

def validate_exec(exec_block: Optional[Mapping[str, Any]]) -> List[Diagnostic]:
    if not exec_block:
        return []
    if exec_block.get("api_version") == DEPRECATED_EXEC_API_VERSION:
        return [Diagnostic(
            severity=WARNING,
            summary="v1alpha1 of the client authentication API has been removed, use v1beta1 or above",
            detail="v1alpha1 of the client authentication API is removed in Kubernetes client versions "
                   "1.24 and above. You may need to update your exec plugin to use the latest version.",
        )]
    return []

def check_context(config: KubernetesConfig) -> List[Diagnostic]:
    """Warn when `config_context` is not defined in any configured kubeconfig."""
    if not config.config_context:
        return []
    paths = config.kubeconfig_paths()
    if not paths:
        return []

    known = []
    for path in paths:
        try:
            known += list_context_names(path)
        except (FileNotFoundError, ValueError) as e:
            return [Diagnostic(severity=WARNING, summary=f"Could not read kubeconfig {path}", detail=str(e))]

    if config.config_context not in known:
        return [Diagnostic(
            severity=WARNING,
            summary=f"Context {config.config_context!r} not found in kubeconfig",
            detail=f"Known contexts: {', '.join(known) or 'none'}",
        )]
    return []

def configure(block: Optional[Mapping[str, Any]] = None,
              environ: Optional[Mapping[str, str]] = None) -> Tuple[Meta, List[Diagnostic]]:
    """
    Build provider Meta from a `kubernetes` block and the environment.

    Raises:
        SchemaValidationError: If the block does not match the schema
    """
    environ = os.environ if environ is None else environ
    block = dict(block or {})
    validate_block(block, KUBERNETES_SCHEMA, KUBERNETES_FIELDS, ("kubernetes",))

    diagnostics = validate_exec(block.get("exec"))

    resolved = apply_env_defaults(block, environ)
    exec_block = resolved.pop("exec", None)
    config = KubernetesConfig(**resolved)
    if exec_block:
        config.exec = ExecConfig(
            api_version=exec_block["api_version"],
            command=exec_block["command"],
            env=dict(exec_block.get("env") or {}),
            args=list(exec_block.get("args") or []),
        )

    diagnostics += check_context(config)
    for diag in diagnostics:
        logger.warning(f"⚠️ {diag.summary}")
    logger.debug(f"Provider configuration: {config.to_dict()}")

    return Meta(kubernetes=config), diagnostics
