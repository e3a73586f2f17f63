# pyright: reportUnknownMemberType=false
import pytest

from xrequest.networking.config import BackendConfig, load_config, select_environment
from xrequest.networking.options import RequestOptions
from xrequest.networking.retry import RetryPolicy


def test_config_defaults_are_stable():
    config = BackendConfig()

    assert config.name == "BACKEND"
    assert config.url is None
    assert config.id_header is None
    assert dict(config.request.headers) == {}
    assert config.retry is None
    assert config.auth is None
    assert config.example is None


def test_config_request_headers_are_independent():
    first = BackendConfig()
    second = BackendConfig()

    assert first.request.headers is not second.request.headers


def test_config_request_headers_are_immutable():
    config = BackendConfig(request=RequestOptions(headers={"X-Test": "1"}))

    with pytest.raises(TypeError):
        config.request.headers["X-Test"] = "2"  # type: ignore[index]


def test_config_copies_external_headers_input():
    headers = {"X-Test": "1"}
    config = BackendConfig(request=RequestOptions(headers=headers))
    headers["X-Test"] = "2"

    assert config.request.headers["X-Test"] == "1"


def test_config_is_frozen():
    config = BackendConfig()

    with pytest.raises(AttributeError):
        config.name = "OTHER"  # type: ignore[misc]


def test_config_rejects_empty_name():
    with pytest.raises(ValueError):
        BackendConfig(name="")


def test_config_rejects_non_positive_timeouts_and_socket_limits():
    with pytest.raises(ValueError):
        BackendConfig(request=RequestOptions(timeout=0))
    with pytest.raises(ValueError):
        BackendConfig(request=RequestOptions(max_sockets=0))


def test_config_rejects_malformed_auth_pairs():
    with pytest.raises(ValueError):
        BackendConfig(auth=("only-user",))

    assert BackendConfig(auth=["user", "pw"]).auth == ("user", "pw")


def test_from_mapping_builds_nested_settings():
    config = BackendConfig.from_mapping(
        {
            "name": "MYSERVER",
            "url": "http://myserver:28080/prefix",
            "id_header": "x-reqid",
            "request": {"timeout": 65.0, "follow_redirect": False, "headers": {"x-reqid": ""}},
            "retry": {"retries": 0, "factor": 2, "min_timeout_seconds": 0.3},
        }
    )

    assert config.request.timeout == 65.0
    assert config.request.follow_redirect is False
    assert dict(config.request.headers) == {"x-reqid": ""}
    assert config.retry == RetryPolicy(retries=0, factor=2, min_timeout_seconds=0.3)


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(TypeError):
        BackendConfig.from_mapping({"name": "X", "proxy": "http://proxy"})


def test_select_environment_passes_flat_documents_through():
    data = {"name": "X"}

    assert select_environment(data, "production") is data


def test_select_environment_uses_environment_variable(monkeypatch):
    data = {"development": {"name": "DEV"}, "production": {"name": "PROD"}}

    monkeypatch.setenv("ENVIRONMENT", "production")
    assert select_environment(data) == {"name": "PROD"}

    monkeypatch.delenv("ENVIRONMENT")
    assert select_environment(data) == {"name": "DEV"}


def test_select_environment_rejects_missing_section():
    with pytest.raises(ValueError):
        select_environment({"development": {}}, "test")


def test_load_config_reads_yaml(tmp_path):
    path = tmp_path / "backend.yaml"
    path.write_text(
        "development:\n"
        "  name: MYSERVER\n"
        "  url: http://localhost:28080\n"
        "production:\n"
        "  name: MYSERVER\n"
        "  url: http://myserver:28080\n"
        "  retry:\n"
        "    retries: 3\n",
        encoding="utf-8",
    )

    config = load_config(path, "production")

    assert config.url == "http://myserver:28080"
    assert config.retry == RetryPolicy(retries=3)


def test_load_config_rejects_non_mapping_documents(tmp_path):
    path = tmp_path / "backend.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)
