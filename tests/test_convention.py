from pathlib import Path

import pytest

from featureflow.errors import ConventionError
from featureflow.features import convention
from featureflow.features.convention import HttpMethod


def test_post_folder_maps_to_method_and_path():
    info = convention.resolve(Path("/app/features/api/users/@post"))
    assert info.method == HttpMethod.POST
    assert info.path == "/api/users"


def test_dynamic_segment_becomes_route_param():
    info = convention.resolve(Path("/app/features/api/orders/[id]/@get"))
    assert info.method == HttpMethod.GET
    assert info.path == "/api/orders/:id"
    assert convention.to_route_path(info.path) == "/api/orders/{id}"


def test_explicit_base_wins_over_inference():
    info = convention.resolve(
        Path("/app/custom-features/api/users/@post"),
        features_base=Path("/app/custom-features"),
    )
    assert info.path == "/api/users"


def test_method_folder_is_case_insensitive():
    assert convention.infer_method(Path("/app/features/items/@DELETE")) == HttpMethod.DELETE


def test_resource_named_steps_is_not_confused_with_steps_dir():
    info = convention.resolve(Path("/app/features/workflows/[id]/steps/@get"))
    assert info.path == "/workflows/:id/steps"


def test_feature_at_features_root_maps_to_slash():
    info = convention.resolve(Path("/app/features/@get"))
    assert info.path == "/"


def test_unknown_method_folder_is_rejected():
    with pytest.raises(ConventionError) as exc:
        convention.infer_method(Path("/app/features/users/@fetch"))
    assert exc.value.location == Path("/app/features/users/@fetch")


def test_directory_without_method_folder_is_rejected():
    with pytest.raises(ConventionError):
        convention.resolve(Path("/app/features/users"), features_base=Path("/app/features"))


def test_feature_outside_base_is_rejected():
    with pytest.raises(ConventionError):
        convention.infer_path(Path("/elsewhere/users/@get"), Path("/app/features"))


def test_outer_method_folders_are_skipped_for_nested_features():
    path = convention.infer_path(Path("/app/features/users/@get/export/@get"), Path("/app/features"))
    assert path == "/users/export"


def test_features_base_falls_back_to_parent_of_method_folder():
    base = convention.infer_features_base(Path("/srv/src/users/@get"))
    assert base == Path("/srv/src/users")


def test_features_base_is_cached_and_clearable():
    convention.infer_features_base(Path("/app/features/a/@get"))
    convention.infer_features_base(Path("/app/features/a/@get"))
    assert convention.cache_size() == 1
    convention.clear_cache()
    assert convention.cache_size() == 0


def test_steps_and_async_tasks_dirs_are_detected(tmp_path: Path):
    feature_dir = tmp_path / "features" / "orders" / "@post"
    (feature_dir / "steps").mkdir(parents=True)
    (feature_dir / "async-tasks").mkdir()
    info = convention.resolve(feature_dir)
    assert info.steps_dir == feature_dir / "steps"
    assert info.async_tasks_dir == feature_dir / "async-tasks"


def test_parse_method_accepts_bare_verbs():
    assert convention.parse_method("patch") == HttpMethod.PATCH
    assert convention.parse_method("@put") == HttpMethod.PUT
    with pytest.raises(ConventionError):
        convention.parse_method("head")


def test_param_names_must_be_identifiers():
    assert convention.parse_dynamic_segment("[user_id]") == ":user_id"
    with pytest.raises(ConventionError) as exc:
        convention.infer_path(Path("/app/features/users/[user-id]/@get"), Path("/app/features"))
    assert exc.value.location == Path("/app/features/users/[user-id]/@get")


def test_route_key_ignores_param_names():
    assert convention.route_key(HttpMethod.GET, "/users/:id") == convention.route_key(HttpMethod.GET, "/users/:uid")
    assert convention.route_key(HttpMethod.GET, "/users/:id") != convention.route_key(HttpMethod.PUT, "/users/:id")
