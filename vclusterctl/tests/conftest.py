"""
Shared pytest fixtures.

FakeVCluster stands in for the vcluster binary: it is a Runner that keeps an
in-memory list of clusters and answers create/list/delete like the real CLI.
"""
import json
from typing import Dict, List, Optional

import pytest

from vclusterctl.config import Config
from vclusterctl.invoker import VClusterCommandError

CREATED = "2022-12-09T03:12:10Z"

def _flag(args: List[str], name: str) -> str:
    if name in args:
        return args[args.index(name) + 1]
    return ""

class FakeVCluster:
    def __init__(self):
        self.clusters: List[Dict[str, str]] = []
        self.calls: List[List[str]] = []
        self.failures: Dict[str, bytes] = {}
        self.list_output = None

    def fail(self, verb: str, output: bytes = b"fatal error") -> None:
        self.failures[verb] = output

    def add(self, name: str, namespace: Optional[str] = None, status: str = "Running") -> None:
        self.clusters.append({
            "Name": name,
            "Namespace": namespace or f"vcluster-{name}",
            "Status": status,
            "Created": CREATED,
            "Context": "kind-kind",
        })

    def verbs(self) -> List[str]:
        return [call[0] for call in self.calls]

    def __call__(self, args: List[str]) -> bytes:
        self.calls.append(list(args))
        verb = args[0]
        if verb in self.failures:
            raise VClusterCommandError(args, self.failures[verb], 1)
        if verb == "create":
            self.add(args[1], _flag(args, "--namespace") or None)
            return b"done Successfully created virtual cluster"
        if verb == "list":
            if self.list_output is not None:
                return self.list_output
            return json.dumps(self.clusters).encode()
        if verb == "delete":
            self.clusters = [c for c in self.clusters if c["Name"] != args[1]]
            return b"done Successfully deleted virtual cluster"
        raise AssertionError(f"unexpected vcluster call: {args}")

@pytest.fixture
def fake_vcluster():
    return FakeVCluster()

@pytest.fixture
def state_file(tmp_path, monkeypatch):
    path = tmp_path / "state" / "state.json"
    monkeypatch.setattr(Config, "STATE_PATH", str(path))
    return path
