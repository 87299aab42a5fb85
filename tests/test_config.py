"""Tests for environment-driven configuration and the log channels."""

import logging
import re
from unittest.mock import patch

from k3dterm.core.config import K3dConfig
from k3dterm.core.log import LoggingChannel, MemoryChannel, show_output


class TestK3dConfig:
    """Tests for K3dConfig.from_env() and env_overlay()."""

    def test_explicit_k3d_path(self) -> None:
        config = K3dConfig.from_env({"K3DTERM_K3D_PATH": "/opt/bin/k3d"})
        assert config.k3d_path == "/opt/bin/k3d"

    def test_k3d_found_on_path(self) -> None:
        with patch("k3dterm.core.config.shutil.which", return_value="/usr/local/bin/k3d"):
            assert K3dConfig.from_env({}).k3d_path == "/usr/local/bin/k3d"

    def test_k3d_missing_falls_back_to_bare_name(self) -> None:
        with patch("k3dterm.core.config.shutil.which", return_value=None):
            assert K3dConfig.from_env({}).k3d_path == "k3d"

    def test_defaults(self) -> None:
        config = K3dConfig.from_env({"K3DTERM_K3D_PATH": "k3d"})
        assert config.kubeconfig is None
        assert config.docker_host is None
        assert config.log_level == "INFO"
        assert config.log_file is None
        assert config.env_overlay() == {}

    def test_overlay(self) -> None:
        config = K3dConfig.from_env({
            "K3DTERM_K3D_PATH": "k3d",
            "K3DTERM_KUBECONFIG": "/home/me/.kube/k3d",
            "K3DTERM_DOCKER_HOST": "unix:///run/user/1000/docker.sock",
        })
        assert config.env_overlay() == {
            "KUBECONFIG": "/home/me/.kube/k3d",
            "DOCKER_HOST": "unix:///run/user/1000/docker.sock",
        }

    def test_docker_host_falls_back_to_standard_variable(self) -> None:
        config = K3dConfig.from_env({"K3DTERM_K3D_PATH": "k3d", "DOCKER_HOST": "tcp://remote:2375"})
        assert config.docker_host == "tcp://remote:2375"

    def test_log_settings(self) -> None:
        config = K3dConfig.from_env({
            "K3DTERM_K3D_PATH": "k3d",
            "K3DTERM_LOG_LEVEL": "debug",
            "K3DTERM_LOG_FILE": "/tmp/k3dterm.log",
        })
        assert config.log_level == "DEBUG"
        assert config.log_file == "/tmp/k3dterm.log"

    def test_extra_env_included(self) -> None:
        config = K3dConfig(extra_env={"K3D_FIX_DNS": "1"}, kubeconfig="/kc")
        assert config.env_overlay() == {"K3D_FIX_DNS": "1", "KUBECONFIG": "/kc"}


class TestLogChannels:
    """Tests for the LogChannel implementations."""

    def test_memory_channel(self) -> None:
        channel = MemoryChannel()
        channel.append("a")
        channel.append("b")
        assert channel.lines == ["a", "b"]

    def test_logging_channel(self, caplog) -> None:
        channel = LoggingChannel(logging.getLogger("k3dterm.test"))
        with caplog.at_level(logging.INFO, logger="k3dterm.test"):
            channel.append("$ k3d version")
        assert caplog.records[0].getMessage() == "$ k3d version"
        assert caplog.records[0].levelno == logging.INFO

    def test_show_output_without_title(self) -> None:
        channel = MemoryChannel()
        show_output(channel, "hello")
        assert channel.lines == ["hello"]

    def test_show_output_with_title(self) -> None:
        channel = MemoryChannel()
        show_output(channel, "hello", title="k3d")
        assert re.fullmatch(r"\[k3d \d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3}\]", channel.lines[0])
        assert channel.lines[1] == "hello"
