import typer
import logging
import sys
from vclusterctl.commands import serve, vcluster
from vclusterctl.logging import setup_logging

app = typer.Typer()

debug_mode = False

# Add all command groups
app.add_typer(vcluster.app, name="vcluster")
app.add_typer(serve.app, name="serve")

# Global options callback
@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """vclusterctl - declarative lifecycle manager for virtual clusters."""
    global debug_mode
    debug_mode = debug
    setup_logging(debug)
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Debug mode enabled")

def run():
    try:
        app()
    except Exception as e:
        if debug_mode:
            import traceback
            logging.error(f"Unhandled exception: {e}\n{traceback.format_exc()}")
        else:
            logging.error(f"Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    run()
