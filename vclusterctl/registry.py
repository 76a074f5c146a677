import json
from pathlib import Path
from typing import Dict, Optional

from .config import Config
from .models import ResourceState

def registry_path() -> Path:
    return Path(Config.STATE_PATH)

def load_registry() -> Dict[str, dict]:
    path = registry_path()
    if path.exists():
        with open(path, "r") as f:
            return json.load(f)
    return {}

def save_registry(data: Dict[str, dict]) -> None:
    path = registry_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)

def get_record(address: str) -> Optional[ResourceState]:
    record = load_registry().get(address)
    return ResourceState.from_dict(record) if record else None

def list_records() -> Dict[str, ResourceState]:
    return {address: ResourceState.from_dict(rec) for address, rec in load_registry().items()}

def put_record(address: str, state: ResourceState) -> None:
    registry = load_registry()
    registry[address] = state.to_dict()
    save_registry(registry)

def remove_record(address: str) -> bool:
    registry = load_registry()
    if registry.pop(address, None) is None:
        return False
    save_registry(registry)
    return True
