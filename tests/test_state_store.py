from pathlib import Path

from kcr.state.store import ResourceState, load_state, save_state


def test_missing_state_is_empty(tmp_path: Path) -> None:
    state = load_state(tmp_path / "state.yaml")
    assert state.clusters == {} and state.manifests == {}


def test_state_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "state.yaml"
    state = ResourceState()
    state.set_cluster("cluster", "dev")
    state.set_manifest("app", "/abs/app.yaml")
    save_state(state, path)
    loaded = load_state(path)
    assert loaded.clusters == {"cluster": "dev"}
    assert loaded.manifests == {"app": "/abs/app.yaml"}
    assert loaded.updated_at


def test_clearing_an_id_removes_it() -> None:
    state = ResourceState(clusters={"cluster": "dev"})
    state.set_cluster("cluster", None)
    assert state.clusters == {}
