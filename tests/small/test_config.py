from datetime import timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from mockserver_launcher.config import DEFAULT_VERSION, LauncherConfig, LaunchOptions, PollPolicy


def test_poll_policy_defaults():
    policy = PollPolicy()

    assert policy.attempt_timeout == timedelta(seconds=2)
    assert policy.delay == timedelta(milliseconds=100)
    assert policy.retries == 100
    assert policy.debug_retry_multiplier == 5


def test_from_env_overrides():
    config = LauncherConfig.from_env({
        "MOCKSERVER_HOST": "127.0.0.1",
        "MOCKSERVER_VERSION": "5.11.2",
        "MOCKSERVER_ARTIFACT_DIR": "/tmp/jars",
        "MOCKSERVER_POLL_DELAY_MS": "250",
        "MOCKSERVER_POLL_RETRIES": "7",
    })

    assert config.host == "127.0.0.1"
    assert config.version == "5.11.2"
    assert config.artifact_dir == Path("/tmp/jars")
    assert config.poll.delay == timedelta(milliseconds=250)
    assert config.poll.retries == 7
    assert config.poll.attempt_timeout == timedelta(seconds=2)


def test_from_env_ignores_garbage_numbers():
    config = LauncherConfig.from_env({"MOCKSERVER_POLL_RETRIES": "lots", "MOCKSERVER_POLL_TIMEOUT_MS": "soon"})

    assert config.poll.retries == 100
    assert config.poll.attempt_timeout == timedelta(seconds=2)
    assert config.version == DEFAULT_VERSION


def test_launch_options_accept_original_names():
    """
    camelCase option names keep working alongside snake_case
    """
    options = LaunchOptions.from_mapping({"serverPort": 1080, "proxyPort": 1090, "javaDebugPort": 5005})

    assert options.server_port == 1080
    assert options.proxy_port == 1090
    assert options.java_debug_port == 5005


def test_launch_options_kwargs_merge():
    options = LaunchOptions.from_mapping({"proxy_port": 1090}, verbose=True)

    assert options.proxy_port == 1090
    assert options.verbose is True


def test_launch_options_copy_with_update():
    base = LaunchOptions(server_port=1080)

    updated = LaunchOptions.from_mapping(base, trace=True)

    assert updated.trace is True
    assert base.trace is False
    assert LaunchOptions.from_mapping(base) is base


def test_control_port_prefers_server_port():
    assert LaunchOptions(server_port=1080, proxy_port=1090).control_port == 1080
    assert LaunchOptions(proxy_port=1090).control_port == 1090
    assert LaunchOptions().control_port is None
    assert not LaunchOptions().has_port()


def test_unknown_options_ignored():
    """
    Options the launcher does not use are dropped instead of failing validation
    """
    options = LaunchOptions.from_mapping({"serverPort": 1080, "runForked": True}, extraFlag="x")

    assert options.server_port == 1080
    assert options.control_port == 1080
    assert "runForked" not in options.model_dump(by_alias=True)


def test_invalid_option_type_rejected():
    with pytest.raises(ValidationError):
        LaunchOptions.from_mapping({"serverPort": "not-a-port"})


def test_kwargs_override_options_by_alias():
    """
    A camelCase keyword overrides the snake_case field of a LaunchOptions base
    """
    base = LaunchOptions(proxy_port=1090)

    options = LaunchOptions.from_mapping(base, serverPort=1080)

    assert options.server_port == 1080
    assert options.proxy_port == 1090
    assert options.control_port == 1080


def test_kwargs_override_mapping_across_spellings():
    options = LaunchOptions.from_mapping({"serverPort": 1080}, server_port=2080)

    assert options.server_port == 2080


def test_kwargs_over_options_are_validated():
    with pytest.raises(ValidationError):
        LaunchOptions.from_mapping(LaunchOptions(server_port=1080), proxyPort="nope")
