"""
Declarative schema for the vcluster resource and the kubernetes provider block.

Field metadata lives in one table per schema; the JSON schema used for
validation is generated from it so the two never drift apart.
"""
from dataclasses import dataclass, fields as dataclass_fields
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator

from .models import VClusterSpec

DISTRO_KINDS = ("k0s", "k8s", "k3s")

class SchemaValidationError(ValueError):
    """Input does not match a declared schema."""

    def __init__(self, message: str, path: Tuple = ()):
        self.path = tuple(path)
        location = ".".join(str(p) for p in self.path)
        super().__init__(f"{location}: {message}" if location else message)

@dataclass(frozen=True)
class Field:
    type: str
    description: str = ""
    required: bool = False
    computed: bool = False
    force_new: bool = False
    conflicts_with: Tuple[str, ...] = ()
    env: Optional[str] = None
    default: Any = None
    sensitive: bool = False
    items: Optional[str] = None
    enum: Tuple[str, ...] = ()
    pattern: Optional[str] = None

VCLUSTER_FIELDS: Dict[str, Field] = {
    "name": Field("string", "The name of the vcluster", required=True, force_new=True),
    "distro": Field("string", "The kubernetes distribution to use (k0s, k8s or k3s)",
                    force_new=True, enum=DISTRO_KINDS),
    "extra_values": Field("array", "List of values in raw yaml format to pass to vcluster. "
                                   "Accepted but not yet passed to vcluster.", items="string"),
    "chart": Field("string", "The virtual cluster chart name to use. Accepted but not yet passed to vcluster."),
    "chart_version": Field("string", "The virtual cluster chart version to use (e.g. v0.9.1). "
                                     "Accepted but not yet passed to vcluster."),
    "chart_repo": Field("string", "The virtual cluster chart repo to use. Accepted but not yet passed to vcluster."),
    "local_chart_dir": Field("string", "The virtual cluster local chart dir to use. "
                                       "Accepted but not yet passed to vcluster.",
                             conflicts_with=("chart", "chart_version", "chart_repo")),
    "kubernetes_version": Field("string", "The kubernetes version to use (e.g. v1.20). "
                                          "Patch versions are not supported",
                                pattern=r"^v?[0-9]+\.[0-9]+\Z"),
    "create_namespace": Field("boolean", "If true the namespace will be created if it does not exist"),
    "disable_ingress_sync": Field("boolean", "If true the virtual cluster will not sync any ingresses"),
    "expose": Field("boolean", "If true will create a load balancer service to expose the vcluster endpoint"),
    "expose_local": Field("boolean", "If true and a local Kubernetes distro is detected, "
                                     "will deploy vcluster with a NodePort service"),
    "isolate": Field("boolean", "If true vcluster and its workloads will run in an isolated environment"),
    "context": Field("string", "The kubernetes config context to use"),
    "namespace": Field("string", "The kubernetes namespace to use"),
    "status": Field("string", computed=True),
    "created": Field("string", computed=True),
}

EXEC_FIELDS: Dict[str, Field] = {
    "api_version": Field("string", required=True),
    "command": Field("string", required=True),
    "env": Field("object", items="string"),
    "args": Field("array", items="string"),
}

KUBERNETES_FIELDS: Dict[str, Field] = {
    "host": Field("string", "The hostname (in form of URI) of Kubernetes master.", env="KUBE_HOST", default=""),
    "username": Field("string", "The username to use for HTTP basic authentication when accessing "
                                "the Kubernetes master endpoint.", env="KUBE_USER", default=""),
    "password": Field("string", "The password to use for HTTP basic authentication when accessing "
                                "the Kubernetes master endpoint.", env="KUBE_PASSWORD", default="",
                      sensitive=True),
    "insecure": Field("boolean", "Whether server should be accessed without verifying the TLS certificate.",
                      env="KUBE_INSECURE", default=False),
    "client_certificate": Field("string", "PEM-encoded client certificate for TLS authentication.",
                                env="KUBE_CLIENT_CERT_DATA", default=""),
    "client_key": Field("string", "PEM-encoded client certificate key for TLS authentication.",
                        env="KUBE_CLIENT_KEY_DATA", default="", sensitive=True),
    "cluster_ca_certificate": Field("string", "PEM-encoded root certificates bundle for TLS authentication.",
                                    env="KUBE_CLUSTER_CA_CERT_DATA", default=""),
    "config_paths": Field("array", "A list of paths to kube config files. "
                                   "Can be set with KUBE_CONFIG_PATHS environment variable.",
                          env="KUBE_CONFIG_PATHS", items="string"),
    "config_path": Field("string", "Path to the kube config file. Can be set with KUBE_CONFIG_PATH.",
                         env="KUBE_CONFIG_PATH", conflicts_with=("config_paths",)),
    "config_context": Field("string", env="KUBE_CTX", default=""),
    "config_context_auth_info": Field("string", env="KUBE_CTX_AUTH_INFO", default=""),
    "config_context_cluster": Field("string", env="KUBE_CTX_CLUSTER", default=""),
    "token": Field("string", "Token to authenticate an service account", env="KUBE_TOKEN", default="",
                   sensitive=True),
    "proxy_url": Field("string", "URL to the proxy to be used for all API requests",
                       env="KUBE_PROXY_URL", default=""),
    "exec": Field("object"),
}

FORCE_NEW_FIELDS = tuple(k for k, f in VCLUSTER_FIELDS.items() if f.force_new)
IN_PLACE_FIELDS = tuple(k for k, f in VCLUSTER_FIELDS.items() if not f.force_new and not f.computed)

def _property(spec: Field) -> Dict[str, Any]:
    prop: Dict[str, Any] = {"type": spec.type}
    if spec.description:
        prop["description"] = spec.description
    if spec.items and spec.type == "array":
        prop["items"] = {"type": spec.items}
    if spec.items and spec.type == "object":
        prop["additionalProperties"] = {"type": spec.items}
    if spec.enum:
        # Case-insensitive match
        prop["pattern"] = "^(?i:" + "|".join(spec.enum) + r")\Z"
    if spec.pattern:
        prop["pattern"] = spec.pattern
    return prop

def build_json_schema(table: Dict[str, Field], include_computed: bool = False) -> Dict[str, Any]:
    """Generate a JSON schema (draft 7) from a field table."""
    properties = {
        name: _property(spec)
        for name, spec in table.items()
        if include_computed or not spec.computed
    }
    return {
        "type": "object",
        "properties": properties,
        "required": [name for name, spec in table.items() if spec.required],
        "additionalProperties": False,
    }

VCLUSTER_SCHEMA = build_json_schema(VCLUSTER_FIELDS)
EXEC_SCHEMA = build_json_schema(EXEC_FIELDS)
KUBERNETES_SCHEMA = build_json_schema(KUBERNETES_FIELDS)
KUBERNETES_SCHEMA["properties"]["exec"] = EXEC_SCHEMA

RESOURCES: Dict[str, Dict[str, Field]] = {
    "vcluster_vcluster": VCLUSTER_FIELDS,
}

PROVIDER_BLOCKS: Dict[str, Dict[str, Field]] = {
    "kubernetes": KUBERNETES_FIELDS,
}

def validate_block(data: Dict[str, Any], schema: Dict[str, Any], table: Dict[str, Field],
                   prefix: Tuple = ()) -> None:
    """Validate `data` against a JSON schema plus the table's conflict rules.

    Raises:
        SchemaValidationError: On the first violation found
    """
    if not isinstance(data, dict):
        raise SchemaValidationError("expected a mapping", prefix)

    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
    if errors:
        err = errors[0]
        raise SchemaValidationError(err.message, prefix + tuple(err.path))

    for name, spec in table.items():
        if data.get(name) in (None, "", []):
            continue
        clashes = [other for other in spec.conflicts_with if data.get(other) not in (None, "", [])]
        if clashes:
            raise SchemaValidationError(
                f"conflicts with {', '.join(clashes)}", prefix + (name,)
            )

def validate_resource(data: Dict[str, Any]) -> VClusterSpec:
    """Validate a vcluster resource block and return its typed desired state.

    Computed fields (`status`, `created`) are ignored if present.
    """
    if not isinstance(data, dict):
        raise SchemaValidationError("expected a mapping")
    data = {k: v for k, v in data.items() if not VCLUSTER_FIELDS.get(k, Field("")).computed}
    validate_block(data, VCLUSTER_SCHEMA, VCLUSTER_FIELDS)
    if not data["name"]:
        raise SchemaValidationError("must not be empty", ("name",))
    return VClusterSpec.from_dict(data)

def changed_fields(old: VClusterSpec, new: VClusterSpec) -> List[str]:
    """Names of desired-state fields whose values differ."""
    return [
        f.name for f in dataclass_fields(VClusterSpec)
        if getattr(old, f.name) != getattr(new, f.name)
    ]

def requires_replacement(changed: List[str]) -> bool:
    """True when any changed field forces the resource to be recreated."""
    return any(name in FORCE_NEW_FIELDS for name in changed)

def describe(table: Dict[str, Field]) -> Dict[str, Dict[str, Any]]:
    """Render a field table for display (CLI `schema`, API `/schema`)."""
    described = {}
    for name, spec in table.items():
        entry: Dict[str, Any] = {"type": spec.type}
        for attr in ("description", "env", "items", "pattern"):
            value = getattr(spec, attr)
            if value:
                entry[attr] = value
        for flag in ("required", "computed", "force_new", "sensitive"):
            if getattr(spec, flag):
                entry[flag] = True
        if spec.enum:
            entry["enum"] = list(spec.enum)
        if spec.conflicts_with:
            entry["conflicts_with"] = list(spec.conflicts_with)
        described[name] = entry
    return described
