import pytest
import yaml

from vclusterctl import registry
from vclusterctl.models import VClusterSpec
from vclusterctl.runtime import CREATE, NOOP, REPLACE, UPDATE, Runtime, load_manifest, parse_manifest, summarize
from vclusterctl.schema import SchemaValidationError

def test_parse_manifest_list_form():
    manifest = parse_manifest({"vclusters": [{"name": "dev1"}, {"name": "dev2", "distro": "k3s"}]})
    assert list(manifest.resources) == ["dev1", "dev2"]
    assert manifest.kubernetes == {}

def test_parse_manifest_mapping_form():
    manifest = parse_manifest({
        "kubernetes": {"config_context": "kind-kind"},
        "vclusters": {"dev": {"name": "dev1"}},
    })
    assert manifest.resources == {"dev": {"name": "dev1"}}
    assert manifest.kubernetes == {"config_context": "kind-kind"}

@pytest.mark.parametrize("data", [
    ["not", "a", "mapping"],
    {"clusters": []},
    {"vclusters": "dev1"},
    {"vclusters": [{"distro": "k3s"}]},
    {"vclusters": [{"name": "dev1"}, {"name": "dev1"}]},
])
def test_parse_manifest_rejects(data):
    with pytest.raises(SchemaValidationError):
        parse_manifest(data)

def test_load_manifest(tmp_path):
    path = tmp_path / "vclusters.yaml"
    path.write_text(yaml.safe_dump({"vclusters": [{"name": "dev1", "isolate": True}]}))
    assert load_manifest(str(path)).resources == {"dev1": {"name": "dev1", "isolate": True}}

def test_load_manifest_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_manifest(str(tmp_path / "missing.yaml"))

def test_apply_creates_and_reads(state_file, fake_vcluster):
    runtime = Runtime(runner=fake_vcluster)

    outcome = runtime.apply("dev", VClusterSpec(name="dev1", namespace="team-a"))

    assert outcome.action == CREATE
    assert outcome.result.ok
    assert fake_vcluster.verbs() == ["create", "list"]
    record = registry.get_record("dev")
    assert record.id == "dev1"
    assert record.observed.status == "Running"
    assert state_file.exists()

def test_apply_twice_is_noop(state_file, fake_vcluster):
    runtime = Runtime(runner=fake_vcluster)
    runtime.apply("dev", VClusterSpec(name="dev1"))

    outcome = runtime.apply("dev", VClusterSpec(name="dev1"))

    assert outcome.action == NOOP
    assert fake_vcluster.verbs() == ["create", "list", "list"]

def test_apply_in_place_change_updates_record_only(state_file, fake_vcluster):
    runtime = Runtime(runner=fake_vcluster)
    runtime.apply("dev", VClusterSpec(name="dev1"))

    outcome = runtime.apply("dev", VClusterSpec(name="dev1", expose=True))

    assert outcome.action == UPDATE
    assert outcome.result.ok
    assert outcome.result.diagnostics
    assert "create" not in fake_vcluster.verbs()[2:]
    assert registry.get_record("dev").spec.expose is True

def test_apply_force_new_change_replaces(state_file, fake_vcluster):
    runtime = Runtime(runner=fake_vcluster)
    runtime.apply("dev", VClusterSpec(name="dev1", distro="k3s"))

    outcome = runtime.apply("dev", VClusterSpec(name="dev1", distro="k0s"))

    assert outcome.action == REPLACE
    assert fake_vcluster.verbs()[2:] == ["list", "delete", "create", "list"]
    assert registry.get_record("dev").spec.distro == "k0s"

def test_apply_recreates_vanished_cluster(state_file, fake_vcluster):
    runtime = Runtime(runner=fake_vcluster)
    runtime.apply("dev", VClusterSpec(name="dev1"))
    fake_vcluster.clusters = []

    outcome = runtime.apply("dev", VClusterSpec(name="dev1"))

    assert outcome.action == CREATE
    assert registry.get_record("dev").id == "dev1"

def test_apply_create_failure_stores_nothing(state_file, fake_vcluster):
    fake_vcluster.fail("create")
    runtime = Runtime(runner=fake_vcluster)

    outcome = runtime.apply("dev", VClusterSpec(name="dev1"))

    assert not outcome.result.ok
    assert registry.get_record("dev") is None
    assert summarize([outcome])["failed"] == 1

def test_apply_manifest_validates_everything_first(state_file, fake_vcluster):
    manifest = parse_manifest({"vclusters": [{"name": "dev1"}, {"name": "dev2", "distro": "eks"}]})

    with pytest.raises(SchemaValidationError) as excinfo:
        Runtime(runner=fake_vcluster).apply_manifest(manifest)

    assert "vclusters.dev2" in str(excinfo.value)
    assert fake_vcluster.calls == []

def test_refresh_drops_vanished_record(state_file, fake_vcluster):
    runtime = Runtime(runner=fake_vcluster)
    runtime.apply("dev", VClusterSpec(name="dev1"))
    fake_vcluster.clusters = []

    result = runtime.refresh("dev")

    assert result.state.id == ""
    assert registry.get_record("dev") is None

def test_refresh_unknown_address(state_file, fake_vcluster):
    assert Runtime(runner=fake_vcluster).refresh("nope") is None

def test_refresh_failure_keeps_record(state_file, fake_vcluster):
    runtime = Runtime(runner=fake_vcluster)
    runtime.apply("dev", VClusterSpec(name="dev1"))
    fake_vcluster.fail("list")

    result = runtime.refresh("dev")

    assert not result.ok
    assert registry.get_record("dev").id == "dev1"

def test_destroy(state_file, fake_vcluster):
    runtime = Runtime(runner=fake_vcluster)
    runtime.apply("dev", VClusterSpec(name="dev1", namespace="team-a"))

    result = runtime.destroy("dev")

    assert result.ok
    assert fake_vcluster.calls[-1] == ["delete", "dev1", "--namespace", "team-a"]
    assert registry.get_record("dev") is None

def test_destroy_failure_keeps_record(state_file, fake_vcluster):
    runtime = Runtime(runner=fake_vcluster)
    runtime.apply("dev", VClusterSpec(name="dev1"))
    fake_vcluster.fail("delete")

    result = runtime.destroy("dev")

    assert not result.ok
    assert registry.get_record("dev").id == "dev1"

def test_import_existing(state_file, fake_vcluster):
    fake_vcluster.add("legacy")
    result = Runtime(runner=fake_vcluster).import_resource("legacy", VClusterSpec(name="legacy"))

    assert result.ok
    assert registry.get_record("legacy").observed.status == "Running"

def test_import_missing(state_file, fake_vcluster):
    result = Runtime(runner=fake_vcluster).import_resource("ghost", VClusterSpec(name="ghost"))

    assert not result.ok
    assert registry.get_record("ghost") is None
