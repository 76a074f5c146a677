import json
from typing import List, Optional

import typer

from vclusterctl import registry
from vclusterctl.models import ERROR, Diagnostic, has_errors
from vclusterctl.runtime import Runtime, load_manifest, summarize
from vclusterctl.schema import PROVIDER_BLOCKS, RESOURCES, SchemaValidationError, describe, validate_resource

vcluster_app = typer.Typer()

def print_diagnostics(diagnostics: List[Diagnostic]) -> None:
    for diag in diagnostics:
        icon = "❌" if diag.severity == ERROR else "⚠️"
        typer.echo(f"{icon} {diag.summary}", err=True)
        if diag.detail:
            typer.echo(diag.detail.rstrip(), err=True)

def _runtime(file: Optional[str]) -> Runtime:
    if not file:
        return Runtime()
    try:
        manifest = load_manifest(file)
        runtime, diagnostics = Runtime.from_manifest(manifest)
    except (FileNotFoundError, SchemaValidationError) as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)
    print_diagnostics(diagnostics)
    return runtime

@vcluster_app.command("apply")
def apply_command(
    file: str = typer.Option(..., "--file", "-f", help="Path to the vcluster manifest (YAML)"),
):
    """Create, replace or update every vcluster declared in a manifest."""
    try:
        manifest = load_manifest(file)
        runtime, diagnostics = Runtime.from_manifest(manifest)
        print_diagnostics(diagnostics)
        outcomes = runtime.apply_manifest(manifest)
    except (FileNotFoundError, SchemaValidationError) as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)

    for outcome in outcomes:
        state = outcome.result.state
        if outcome.result.ok:
            status = state.observed.status or "unknown"
            typer.echo(f"✅ {outcome.address}: {outcome.action} ({state.spec.name}, status: {status})")
        else:
            typer.echo(f"❌ {outcome.address}: {outcome.action} failed")
        print_diagnostics(outcome.result.diagnostics)

    counts = summarize(outcomes)
    typer.echo(", ".join(f"{count} {action}" for action, count in counts.items()))
    if counts["failed"]:
        raise typer.Exit(code=1)

@vcluster_app.command("refresh")
def refresh_command(
    address: Optional[str] = typer.Option(None, help="Record to refresh (all records when omitted)"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Manifest with provider settings"),
):
    """Re-read observed state from `vcluster list`."""
    runtime = _runtime(file)
    addresses = [address] if address else list(registry.load_registry())
    failed = False
    for addr in addresses:
        result = runtime.refresh(addr)
        if result is None:
            typer.echo(f"❌ No record for '{addr}'.", err=True)
            failed = True
            continue
        print_diagnostics(result.diagnostics)
        if not result.ok:
            failed = True
        elif result.state.exists:
            typer.echo(f"🔄 {addr}: {result.state.observed.status}")
        else:
            typer.echo(f"🔍 {addr}: vcluster {result.state.spec.name} is gone, record removed")
    if failed:
        raise typer.Exit(code=1)

@vcluster_app.command("destroy")
def destroy_command(
    address: str = typer.Option(..., help="Record to destroy"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Manifest with provider settings"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a vcluster and drop its record."""
    record = registry.get_record(address)
    if record is None:
        typer.echo(f"❌ No record for '{address}'.", err=True)
        raise typer.Exit(code=1)

    if not yes:
        confirm = typer.confirm(f"Are you sure you want to delete vcluster '{record.spec.name}'?", default=False)
        if not confirm:
            typer.echo("❌ Deletion cancelled.")
            raise typer.Exit()

    result = _runtime(file).destroy(address)
    print_diagnostics(result.diagnostics)
    if not result.ok:
        raise typer.Exit(code=1)
    typer.echo(f"✅ vcluster {record.spec.name} deleted.")

@vcluster_app.command("import")
def import_command(
    name: str = typer.Option(..., help="Name of the existing vcluster"),
    address: Optional[str] = typer.Option(None, help="Record address (defaults to the name)"),
    namespace: Optional[str] = typer.Option(None, help="Namespace the vcluster runs in"),
    context: Optional[str] = typer.Option(None, help="Kube context to use"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Manifest with provider settings"),
):
    """Start tracking a vcluster that already exists."""
    block = {"name": name}
    if namespace:
        block["namespace"] = namespace
    if context:
        block["context"] = context
    try:
        spec = validate_resource(block)
    except SchemaValidationError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)

    result = _runtime(file).import_resource(address or name, spec)
    print_diagnostics(result.diagnostics)
    if has_errors(result.diagnostics):
        raise typer.Exit(code=1)
    typer.echo(f"📥 Imported vcluster {name} ({result.state.observed.status})")

@vcluster_app.command("list")
def list_command():
    """List all tracked vclusters."""
    records = registry.list_records()
    if not records:
        typer.echo("No vclusters tracked.")
        return
    for address, state in records.items():
        created = state.observed.created.isoformat() if state.observed.created else "-"
        typer.echo(f"{address}: {state.spec.name} status={state.observed.status or '-'} created={created}")

@vcluster_app.command("get")
def get_command(address: str = typer.Option(..., help="Record address")):
    """Show the stored record for a vcluster."""
    record = registry.get_record(address)
    if record is None:
        typer.echo(f"❌ No record for '{address}'.", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(record.to_dict(), indent=2))

@vcluster_app.command("schema")
def schema_command():
    """Print the resource and provider schemas."""
    typer.echo(json.dumps({
        "resources": {name: describe(table) for name, table in RESOURCES.items()},
        "provider": {name: describe(table) for name, table in PROVIDER_BLOCKS.items()},
    }, indent=2))

app = vcluster_app
