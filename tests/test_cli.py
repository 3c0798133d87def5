"""Tests for the confbind CLI (describe, resolve commands)."""

import argparse
import json
import os
import sys
from datetime import timedelta

import pytest
import yaml

from confbind.cli import build_source, cmd_describe, cmd_resolve, load_shape, main, to_plain
from confbind.converters import default_type_converter
from confbind.sources import EnvironmentConfigurationSource, MapConfigurationSource, MultiConfigurationSource

SHAPES_MODULE = "cli_shapes"

SHAPES = '''\
from datetime import timedelta
from typing import Annotated, Optional

from confbind import Default, Encrypted, configuration


class ServerConfig:
    host: str
    port: int = 8080


class AppConfig:
    """Application settings.

    Details that are not part of the description.
    """
    name: Annotated[str, Default("demo")]
    server: ServerConfig
    servers: list[ServerConfig]
    password: Annotated[Optional[str], Encrypted()]
    timeout: Optional[timedelta]


@configuration(abstract=True)
class BaseConfig:
    name: str


def helper():
    pass
'''

PROPERTIES = """\
name=app
server.host=h
servers.size=1
servers[0].host=a
timeout=PT30S
"""


class FakeArgs:
    """Fake argparse namespace."""
    def __init__(self, **kwargs):
        self.shape = kwargs.get("shape", f"{SHAPES_MODULE}:AppConfig")
        self.source = kwargs.get("source", None)
        self.env = kwargs.get("env", None)
        self.explicit = kwargs.get("explicit", False)
        self.format = kwargs.get("format", "json")


@pytest.fixture
def shapes(tmp_path, monkeypatch):
    """Make an importable module of configuration shapes."""
    (tmp_path / f"{SHAPES_MODULE}.py").write_text(SHAPES)
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, SHAPES_MODULE, raising=False)
    for name in list(os.environ):
        if name.startswith("CONFBIND_"):
            monkeypatch.delenv(name)
    return tmp_path


@pytest.fixture
def properties_file(shapes):
    """Write a properties file for the application shape."""
    path = shapes / "app.properties"
    path.write_text(PROPERTIES)
    return path


class TestLoadShape:
    """Tests for load_shape."""

    def test_loads_class(self, shapes):
        """Test importing a shape."""
        shape = load_shape(f"{SHAPES_MODULE}:ServerConfig")

        assert shape.__name__ == "ServerConfig"

    def test_nested_name(self):
        """Test qualified names."""
        assert load_shape("argparse:ArgumentParser") is argparse.ArgumentParser

    def test_malformed(self):
        """Test that MODULE:SHAPE is required."""
        with pytest.raises(ValueError, match="Expected MODULE:SHAPE, got 'AppConfig'"):
            load_shape("AppConfig")
        with pytest.raises(ValueError, match="Expected MODULE:SHAPE"):
            load_shape("module:")

    def test_not_a_class(self, shapes):
        """Test that functions are rejected."""
        with pytest.raises(ValueError, match="cli_shapes:helper is not a class"):
            load_shape(f"{SHAPES_MODULE}:helper")

    def test_missing(self, shapes):
        """Test import and attribute errors."""
        with pytest.raises(ImportError):
            load_shape("no_such_module_anywhere:Shape")
        with pytest.raises(AttributeError):
            load_shape(f"{SHAPES_MODULE}:Missing")


class TestDescribeCommand:
    """Tests for `confbind describe`."""

    def test_describe_model_tree(self, shapes, capsys):
        """describe should print every property with its candidate keys."""
        result = cmd_describe(FakeArgs())

        assert result == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "AppConfig"
        assert lines[1] == "  Application settings."
        assert "  name: str = 'demo'" in lines
        assert "    keys: name" in lines
        assert "  server: ServerConfig" in lines
        assert "    port: int = '8080'" in lines
        assert "      keys: server.port" in lines
        assert "  servers: list[ServerConfig] (default size 0)" in lines
        assert "    size keys: servers.size" in lines
        assert "    [0]:" in lines
        assert "        keys: servers[0].host, servers.host" in lines
        assert "    encrypted: default" in lines

    def test_describe_abstract(self, shapes, capsys):
        """describe should mark abstract shapes."""
        result = cmd_describe(FakeArgs(shape=f"{SHAPES_MODULE}:BaseConfig"))

        assert result == 0
        assert capsys.readouterr().out.splitlines()[0] == "BaseConfig (abstract)"

    def test_describe_explicit(self, shapes, capsys):
        """describe --explicit should reject shapes without markers."""
        result = cmd_describe(FakeArgs(shape=f"{SHAPES_MODULE}:ServerConfig", explicit=True))

        assert result == 1
        assert "ServerConfig is not a configuration type" in capsys.readouterr().err

    def test_describe_bad_shape(self, capsys):
        """describe should report malformed shapes."""
        result = cmd_describe(FakeArgs(shape="nothing"))

        assert result == 1
        assert "Expected MODULE:SHAPE" in capsys.readouterr().err


class TestResolveCommand:
    """Tests for `confbind resolve`."""

    def test_resolve_json(self, properties_file, capsys):
        """resolve should print converted values as JSON."""
        result = cmd_resolve(FakeArgs(source=[str(properties_file)]))

        assert result == 0
        assert json.loads(capsys.readouterr().out) == {
            "name": "app",
            "server": {"host": "h", "port": 8080},
            "servers": [{"host": "a", "port": 8080}],
            "password": None,
            "timeout": "PT30S",
        }

    def test_resolve_yaml(self, properties_file, capsys):
        """resolve --format yaml should print YAML."""
        result = cmd_resolve(FakeArgs(source=[str(properties_file)], format="yaml"))

        assert result == 0
        data = yaml.safe_load(capsys.readouterr().out)
        assert data["server"] == {"host": "h", "port": 8080}

    def test_resolve_without_sources(self, shapes, capsys):
        """resolve should fall back to defaults."""
        result = cmd_resolve(FakeArgs())

        assert result == 0
        data = json.loads(capsys.readouterr().out)
        assert data["name"] == "demo"
        assert data["servers"] == []

    def test_environment_wins(self, properties_file, monkeypatch, capsys):
        """resolve --env should take precedence over files."""
        monkeypatch.setenv("CLITEST_NAME", "from-env")

        result = cmd_resolve(FakeArgs(source=[str(properties_file)], env="CLITEST"))

        assert result == 0
        data = json.loads(capsys.readouterr().out)
        assert data["name"] == "from-env"
        assert data["server"]["host"] == "h"

    def test_earlier_file_wins(self, properties_file, shapes, capsys):
        """resolve should prefer earlier files."""
        override = shapes / "override.yaml"
        override.write_text("name: first\n")

        result = cmd_resolve(FakeArgs(source=[str(override), str(properties_file)]))

        assert result == 0
        data = json.loads(capsys.readouterr().out)
        assert data["name"] == "first"
        assert data["server"]["host"] == "h"

    def test_invalid_value(self, shapes, capsys):
        """resolve should report conversion errors."""
        path = shapes / "bad.properties"
        path.write_text("server.port=abc\n")

        result = cmd_resolve(FakeArgs(source=[str(path)]))

        assert result == 1
        assert "Unable to convert 'abc' to int" in capsys.readouterr().err

    def test_unsupported_file(self, shapes, capsys):
        """resolve should report unknown file types."""
        result = cmd_resolve(FakeArgs(source=[str(shapes / "app.ini")]))

        assert result == 1
        assert "Unsupported configuration file type" in capsys.readouterr().err


class TestHelpers:
    """Tests for build_source and to_plain."""

    def test_build_source(self, properties_file):
        """Test source composition."""
        assert isinstance(build_source([], None), MapConfigurationSource)
        assert isinstance(build_source([], "APP"), EnvironmentConfigurationSource)
        assert build_source([str(properties_file)], None).get_value("name").get() == "app"
        assert isinstance(build_source([str(properties_file)], "APP"), MultiConfigurationSource)

    def test_to_plain(self):
        """Test that values are made serializable."""
        converter = default_type_converter()

        assert to_plain({"a": (1, None), 2: {"b"}}, converter) == {"a": [1, None], "2": ["b"]}
        assert to_plain(timedelta(minutes=2), converter) == "PT2M"


class TestMain:
    """Tests for the entry point."""

    def test_no_command(self, capsys):
        """main without a command should print help and fail."""
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
        assert "describe" in capsys.readouterr().out

    def test_describe(self, shapes, capsys):
        """main should exit with the command result."""
        with pytest.raises(SystemExit) as exc_info:
            main(["describe", f"{SHAPES_MODULE}:ServerConfig"])

        assert exc_info.value.code == 0
        assert capsys.readouterr().out.startswith("ServerConfig")

    def test_resolve_format(self, properties_file, capsys):
        """main should pass the resolve options through."""
        with pytest.raises(SystemExit) as exc_info:
            main(["resolve", f"{SHAPES_MODULE}:AppConfig", "-s", str(properties_file), "-f", "yaml"])

        assert exc_info.value.code == 0
        assert "name: app" in capsys.readouterr().out
