"""
Local host runtime: decides which lifecycle operation to run for a declared
vcluster and keeps the resulting records in the state registry.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from . import reconciler, registry
from .invoker import Runner, make_runner
from .models import (
    ERROR, WARNING, Diagnostic, OperationResult, ResourceState, VClusterSpec, has_errors,
)
from .provider import Meta, configure
from .schema import SchemaValidationError, changed_fields, requires_replacement, validate_resource

logger = logging.getLogger("vclusterctl.runtime")

CREATE = "create"
REPLACE = "replace"
UPDATE = "update"
NOOP = "noop"

@dataclass
class Manifest:
    """A parsed manifest: provider block plus resource blocks by address."""
    kubernetes: Dict[str, Any] = field(default_factory=dict)
    resources: Dict[str, Dict[str, Any]] = field(default_factory=dict)

@dataclass
class ApplyOutcome:
    address: str
    action: str
    result: OperationResult

def parse_manifest(data: Any) -> Manifest:
    """
    Accepts either a mapping of address to resource block or a list of
    resource blocks (the address is then the vcluster name):

        kubernetes:
          config_path: ~/.kube/config
        vclusters:
          dev:
            name: dev1
            distro: k3s
    """
    if data is None:
        return Manifest()
    if not isinstance(data, dict):
        raise SchemaValidationError("manifest must be a mapping")

    unknown = set(data) - {"kubernetes", "vclusters"}
    if unknown:
        raise SchemaValidationError(f"unknown keys: {', '.join(sorted(unknown))}")

    blocks = data.get("vclusters") or {}
    if isinstance(blocks, list):
        resources = {}
        for i, block in enumerate(blocks):
            if not isinstance(block, dict) or not block.get("name"):
                raise SchemaValidationError("each vcluster needs a name", ("vclusters", i))
            if block["name"] in resources:
                raise SchemaValidationError(f"duplicate vcluster {block['name']!r}", ("vclusters", i))
            resources[block["name"]] = block
    elif isinstance(blocks, dict):
        resources = dict(blocks)
    else:
        raise SchemaValidationError("must be a list or a mapping", ("vclusters",))

    return Manifest(kubernetes=data.get("kubernetes") or {}, resources=resources)

def load_manifest(path: str) -> Manifest:
    manifest_path = Path(path)
    if not manifest_path.exists():
        raise FileNotFoundError(f"❌ Manifest not found: {manifest_path}")
    with open(manifest_path) as f:
        return parse_manifest(yaml.safe_load(f))

def _as_warnings(diagnostics: List[Diagnostic]) -> List[Diagnostic]:
    return [Diagnostic(severity=WARNING, summary=d.summary, detail=d.detail) for d in diagnostics]

class Runtime:
    """Drives the reconciler for records kept in the state registry."""

    def __init__(self, meta: Optional[Meta] = None, runner: Optional[Runner] = None):
        self.meta = meta or Meta()
        self.run = runner or make_runner(env=self.meta.process_env())

    @classmethod
    def from_manifest(cls, manifest: Manifest, runner: Optional[Runner] = None):
        meta, diagnostics = configure(manifest.kubernetes)
        return cls(meta=meta, runner=runner), diagnostics

    def _create(self, address: str, spec: VClusterSpec) -> OperationResult:
        result = reconciler.create(ResourceState(spec=spec), self.run)
        if not result.ok:
            return result
        registry.put_record(address, result.state)

        refreshed = reconciler.read(result.state, self.run)
        if not refreshed.ok:
            return OperationResult(state=result.state, diagnostics=_as_warnings(refreshed.diagnostics))
        if not refreshed.state.exists:
            return OperationResult(state=result.state, diagnostics=[Diagnostic(
                severity=WARNING,
                summary=f"vcluster {spec.name} was created but is not listed yet",
            )])
        registry.put_record(address, refreshed.state)
        return refreshed

    def apply(self, address: str, spec: VClusterSpec) -> ApplyOutcome:
        """Bring the vcluster at `address` in line with `spec`."""
        prior = registry.get_record(address)

        if prior is not None:
            refreshed = self.refresh(address)
            if not refreshed.ok:
                return ApplyOutcome(address, NOOP, refreshed)
            prior = refreshed.state if refreshed.state.exists else None

        if prior is None:
            return ApplyOutcome(address, CREATE, self._create(address, spec))

        changed = changed_fields(prior.spec, spec)
        if requires_replacement(changed):
            logger.info(f"♻️ {address}: {', '.join(changed)} changed, replacing vcluster {prior.spec.name}")
            deleted = reconciler.delete(prior, self.run)
            if not deleted.ok:
                return ApplyOutcome(address, REPLACE, deleted)
            registry.remove_record(address)
            return ApplyOutcome(address, REPLACE, self._create(address, spec))

        if changed:
            result = reconciler.update(prior, spec)
            registry.put_record(address, result.state)
            return ApplyOutcome(address, UPDATE, result)

        return ApplyOutcome(address, NOOP, OperationResult(state=prior))

    def apply_manifest(self, manifest: Manifest) -> List[ApplyOutcome]:
        """Validate every block first, then apply them in manifest order."""
        specs = {}
        for address, block in manifest.resources.items():
            try:
                specs[address] = validate_resource(block)
            except SchemaValidationError as e:
                raise SchemaValidationError(str(e), ("vclusters", address)) from e
        return [self.apply(address, spec) for address, spec in specs.items()]

    def refresh(self, address: str) -> Optional[OperationResult]:
        """Re-read the vcluster at `address`; drops the record if it is gone."""
        prior = registry.get_record(address)
        if prior is None:
            return None
        result = reconciler.read(prior, self.run)
        if not result.ok:
            return result
        if result.state.exists:
            registry.put_record(address, result.state)
        else:
            registry.remove_record(address)
        return result

    def destroy(self, address: str) -> Optional[OperationResult]:
        """Delete the vcluster at `address`; the record goes only on success."""
        prior = registry.get_record(address)
        if prior is None:
            return None
        result = reconciler.delete(prior, self.run)
        if result.ok:
            registry.remove_record(address)
        return result

    def import_resource(self, address: str, spec: VClusterSpec) -> OperationResult:
        """Start tracking an existing vcluster by name."""
        state = ResourceState(spec=spec, id=spec.name)
        result = reconciler.read(state, self.run)
        if not result.ok:
            return result
        if not result.state.exists:
            return OperationResult(state=result.state, diagnostics=[Diagnostic(
                severity=ERROR,
                summary=f"Cannot import non-existent vcluster {spec.name}",
                detail="vcluster list does not report a cluster with this name",
            )])
        registry.put_record(address, result.state)
        return result

def summarize(outcomes: List[ApplyOutcome]) -> Dict[str, int]:
    counts = {CREATE: 0, REPLACE: 0, UPDATE: 0, NOOP: 0, "failed": 0}
    for outcome in outcomes:
        if has_errors(outcome.result.diagnostics):
            counts["failed"] += 1
        else:
            counts[outcome.action] += 1
    return counts
