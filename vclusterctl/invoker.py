"""Runs the vcluster CLI and captures its output."""
import logging
import subprocess
from typing import Callable, Dict, List, Optional

from .config import Config

logger = logging.getLogger("vclusterctl.invoker")

# A runner takes the vcluster arguments (without the binary) and returns the
# combined output, raising VClusterCommandError on failure.
Runner = Callable[[List[str]], bytes]

class VClusterCommandError(Exception):
    """The vcluster process exited non-zero or could not be started."""

    def __init__(self, args: List[str], output: bytes, returncode: Optional[int] = None):
        self.args_list = list(args)
        self.output = output
        self.returncode = returncode
        super().__init__(self.summary)

    @property
    def summary(self) -> str:
        return "vcluster " + " ".join(self.args_list)

    @property
    def detail(self) -> str:
        return self.output.decode("utf-8", errors="replace")

def base_args(args: List[str], namespace: Optional[str] = None,
              context: Optional[str] = None) -> List[str]:
    """Append the targeting flags shared by every vcluster call."""
    args = list(args)
    if namespace:
        args += ["--namespace", namespace]
    if context:
        args += ["--context", context]
    return args

def run_vcluster(args: List[str], env: Optional[Dict[str, str]] = None,
                 binary: Optional[str] = None) -> bytes:
    """
    Execute `vcluster <args>` and return stdout and stderr combined.

    Args:
        args: Arguments passed to the vcluster binary
        env: Environment for the child process (inherits ours when None)
        binary: Override for Config.VCLUSTER_BINARY

    Returns:
        bytes: The combined output of a successful run

    Raises:
        VClusterCommandError: On a non-zero exit or a launch failure
    """
    cmd = [binary or Config.VCLUSTER_BINARY] + list(args)
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, env=env)
    except OSError as e:
        logger.error(f"❌ Failed to start {cmd[0]}: {e}")
        raise VClusterCommandError(args, str(e).encode("utf-8")) from e

    output = result.stdout or b""
    if result.returncode != 0:
        logger.error(f"❌ vcluster {' '.join(args)} exited with code {result.returncode}")
        raise VClusterCommandError(args, output, result.returncode)
    return output

def make_runner(env: Optional[Dict[str, str]] = None, binary: Optional[str] = None) -> Runner:
    """Bind an environment and binary into a Runner for the reconciler."""
    def runner(args: List[str]) -> bytes:
        return run_vcluster(args, env=env, binary=binary)
    return runner
