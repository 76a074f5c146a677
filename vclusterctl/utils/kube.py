import os
from typing import List, Optional

from kubernetes import config
from kubernetes.config.config_exception import ConfigException

def resolve_kubeconfig_paths(config_path: Optional[str] = None,
                             config_paths: Optional[List[str]] = None) -> List[str]:
    """
    Expand the configured kubeconfig location(s) into absolute paths.
    `config_path` wins when both are given.
    """
    if config_path:
        candidates = [config_path]
    else:
        candidates = list(config_paths or [])
    return [os.path.abspath(os.path.expanduser(p)) for p in candidates if p]

def list_context_names(config_file: str) -> List[str]:
    """
    Return the context names defined in a kubeconfig file.
    Only the file is read; no cluster is contacted.
    """
    if not os.path.exists(config_file):
        raise FileNotFoundError(f"❌ Kubeconfig not found: {config_file}")
    try:
        contexts, _ = config.list_kube_config_contexts(config_file=config_file)
    except ConfigException as e:
        raise ValueError(f"Invalid kubeconfig {config_file}: {e}") from e
    return [ctx["name"] for ctx in contexts or []]
