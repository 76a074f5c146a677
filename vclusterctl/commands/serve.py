import typer
import uvicorn

from vclusterctl.config import Config

app = typer.Typer()

@app.command("api")
def serve_api(
    host: str = typer.Option(None, help="Bind address (default: VCLUSTERCTL_API_HOST)"),
    port: int = typer.Option(None, help="Port (default: VCLUSTERCTL_API_PORT)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Serve the vcluster lifecycle operations over HTTP."""
    try:
        Config.validate_api()
    except ValueError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)

    uvicorn.run(
        "vclusterctl.api.main:app",
        host=host or Config.API_HOST,
        port=port or Config.API_PORT,
        reload=reload,
        log_level=Config.LOG_LEVEL.lower(),
    )
