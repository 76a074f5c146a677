"""
Lifecycle operations for the vcluster resource.

Each operation takes the current record and a Runner and returns a new
record plus diagnostics. Nothing is kept between calls, so any host that
stores records (the local CLI runtime, the HTTP API) can drive them.
"""
import json
import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from .invoker import Runner, VClusterCommandError, base_args
from .models import (
    ERROR, WARNING, Diagnostic, ListEntry, ObservedState, OperationResult,
    ResourceState, VClusterSpec,
)
from .schema import IN_PLACE_FIELDS, changed_fields

logger = logging.getLogger("vclusterctl.reconciler")

# Boolean fields and their flags, in emission order
BOOL_FLAGS = (
    ("isolate", "--isolate"),
    ("expose", "--expose"),
    ("expose_local", "--expose-local"),
    ("disable_ingress_sync", "--disable-ingress-sync"),
    ("create_namespace", "--create-namespace"),
)

def _bool_literal(value: bool) -> str:
    return "true" if value else "false"

def _command_diagnostic(err: VClusterCommandError) -> Diagnostic:
    return Diagnostic(severity=ERROR, summary=err.summary, detail=err.detail)

def create_args(spec: VClusterSpec) -> List[str]:
    """Build the argument vector for `vcluster create`."""
    args = base_args(["create", spec.name, "--connect=false"], spec.namespace, spec.context)

    if spec.distro:
        args.append(f"--distro={spec.distro}")

    for attr, flag in BOOL_FLAGS:
        value = getattr(spec, attr)
        if value is not None:
            args.append(f"{flag}={_bool_literal(value)}")

    if spec.kubernetes_version:
        args.append(f"--kubernetes-version={spec.kubernetes_version}")

    # chart, chart_version, chart_repo, local_chart_dir and extra_values
    # are not forwarded

    return args

def list_args(spec: VClusterSpec) -> List[str]:
    """Build the argument vector for `vcluster list`."""
    return base_args(["list", "--output", "json"], spec.namespace, spec.context)

def delete_args(spec: VClusterSpec) -> List[str]:
    """Build the argument vector for `vcluster delete`."""
    return base_args(["delete", spec.name], spec.namespace, spec.context)

def parse_list_output(output: bytes) -> List[ListEntry]:
    """Decode `vcluster list --output json` into ListEntry records.

    Raises:
        ValueError: If the output is not a JSON array of cluster objects
    """
    data = json.loads(output)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array, got {type(data).__name__}")
    return [ListEntry.from_json(item) for item in data]

def find_entry(entries: List[ListEntry], name: str) -> Tuple[bool, Optional[ListEntry]]:
    """Find the entry named `name`. When names repeat, the last one wins."""
    found, match = False, None
    for entry in entries:
        if entry.name == name:
            found, match = True, entry
    return found, match

def create(state: ResourceState, run: Runner) -> OperationResult:
    """Create the vcluster described by `state.spec`."""
    spec = state.spec
    args = create_args(spec)
    logger.info(f"🚀 Creating vcluster {spec.name}...")
    try:
        run(args)
    except VClusterCommandError as e:
        return OperationResult(state=state, diagnostics=[_command_diagnostic(e)])

    logger.info(f"✅ vcluster {spec.name} created")
    return OperationResult(state=state.with_changes(id=spec.name))

def read(state: ResourceState, run: Runner) -> OperationResult:
    """Refresh observed state from `vcluster list`.

    A cluster missing from the list clears the id; that is not an error.
    """
    spec = state.spec
    args = list_args(spec)
    try:
        output = run(args)
    except VClusterCommandError as e:
        return OperationResult(state=state, diagnostics=[_command_diagnostic(e)])

    try:
        entries = parse_list_output(output)
    except (ValueError, TypeError) as e:
        logger.error(f"❌ Could not decode vcluster list output: {e}")
        return OperationResult(state=state, diagnostics=[
            Diagnostic(severity=ERROR, summary=f"failed to decode output of vcluster {' '.join(args)}",
                       detail=str(e))
        ])

    found, entry = find_entry(entries, state.id)
    if not found:
        logger.info(f"🔍 vcluster {state.id or spec.name} not found, dropping it from state")
        return OperationResult(state=state.with_changes(id=""))

    return OperationResult(state=state.with_changes(
        spec=replace(spec, name=entry.name),
        observed=ObservedState(status=entry.status, created=entry.created),
    ))

def update(state: ResourceState, spec: VClusterSpec) -> OperationResult:
    """Record the new desired state. Nothing is sent to vcluster.

    Changes to fields that can be updated in place are stored but not applied
    to the running cluster; a warning lists them.
    """
    changed = [f for f in changed_fields(state.spec, spec) if f in IN_PLACE_FIELDS]
    diagnostics = []
    if changed:
        logger.warning(f"⚠️ Changes to {', '.join(changed)} are not applied to running vcluster {spec.name}")
        diagnostics.append(Diagnostic(
            severity=WARNING,
            summary=f"vcluster {spec.name}: in-place changes are not applied",
            detail=f"Changed fields {', '.join(changed)} are saved in state only; "
                   f"recreate the vcluster to apply them.",
        ))
    return OperationResult(state=state.with_changes(spec=spec), diagnostics=diagnostics)

def delete(state: ResourceState, run: Runner) -> OperationResult:
    """Delete the vcluster. On success the host is expected to drop the record."""
    spec = state.spec
    logger.info(f"🗑️ Deleting vcluster {spec.name}...")
    try:
        run(delete_args(spec))
    except VClusterCommandError as e:
        return OperationResult(state=state, diagnostics=[_command_diagnostic(e)])

    logger.info(f"✅ vcluster {spec.name} deleted")
    return OperationResult(state=state)
