"""Tests for configuration management."""

from pathlib import Path

import pytest
import yaml

from strand.config import (
    DEFAULT_PLUGIN_DIR,
    StrandConfig,
    add_plugin,
    default_config,
    export_config_yaml,
    init_config,
    load_config,
    save_config,
)
from strand.exceptions import AmbiguousPluginError, ConfigLoadError, ConfigSaveError
from strand.plugins.models import ArchivePlugin, GitProvider, GitRepo


EXAMPLE_CONFIG = """\
plugin_dir: ~/.local/share/strand/plugins
plugins:
  - provider: github
    user: someuser
    repo: somerepo
    git_ref: main
  - url: https://example.com/archive.tar.gz
  - provider: bitbucket
    user: other
    repo: thing
"""


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(EXAMPLE_CONFIG)
    return path


class TestConfigLoading:
    """Test configuration loading."""

    def test_load_plugins_in_order(self, home: Path, config_path: Path) -> None:
        """Test plugins are parsed in file order."""
        config = load_config(config_path)

        assert config.plugins == [
            GitRepo(GitProvider.GITHUB, "someuser", "somerepo", "main"),
            ArchivePlugin("https://example.com/archive.tar.gz"),
            GitRepo(GitProvider.BITBUCKET, "other", "thing", None),
        ]

    def test_plugin_dir_expanded(self, home: Path, config_path: Path) -> None:
        """Test the leading ~ in plugin_dir is expanded on load."""
        config = load_config(config_path)

        assert config.plugin_dir == home / ".local" / "share" / "strand" / "plugins"
        assert config.plugin_dir_source == "~/.local/share/strand/plugins"

    def test_absolute_plugin_dir(self, tmp_path: Path) -> None:
        """Test an absolute plugin_dir is kept."""
        path = tmp_path / "config.yaml"
        path.write_text(f"plugin_dir: {tmp_path / 'plugins'}\nplugins: []\n")

        config = load_config(path)
        assert config.plugin_dir == tmp_path / "plugins"
        assert config.plugins == []

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing config file is a ConfigLoadError."""
        with pytest.raises(ConfigLoadError) as exc_info:
            load_config(tmp_path / "missing.yaml")

        assert exc_info.value.exit_code == 2
        assert exc_info.value.details["path"] == str(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test malformed YAML is a ConfigLoadError."""
        path = tmp_path / "config.yaml"
        path.write_text("plugin_dir: [unclosed\n")

        with pytest.raises(ConfigLoadError, match="invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        """Test a top-level list is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigLoadError, match="mapping"):
            load_config(path)

    def test_missing_plugin_dir(self, tmp_path: Path) -> None:
        """Test plugin_dir is required."""
        path = tmp_path / "config.yaml"
        path.write_text("plugins: []\n")

        with pytest.raises(ConfigLoadError, match="plugin_dir"):
            load_config(path)

    def test_null_plugins_is_empty(self, tmp_path: Path) -> None:
        """Test an empty plugins key loads as no plugins."""
        path = tmp_path / "config.yaml"
        path.write_text("plugin_dir: /tmp/plugins\nplugins:\n")

        assert load_config(path).plugins == []

    def test_plugins_not_a_list(self, tmp_path: Path) -> None:
        """Test plugins must be a list."""
        path = tmp_path / "config.yaml"
        path.write_text("plugin_dir: /tmp/plugins\nplugins: nope\n")

        with pytest.raises(ConfigLoadError, match="list"):
            load_config(path)

    def test_ambiguous_entry(self, tmp_path: Path) -> None:
        """Test an entry with both url and git fields is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "plugin_dir: /tmp/plugins\n"
            "plugins:\n"
            "  - url: https://example.com/a.tar.gz\n"
            "    provider: github\n"
        )

        with pytest.raises(AmbiguousPluginError) as exc_info:
            load_config(path)

        assert exc_info.value.details["entry"] == 0


class TestConfigSaving:
    """Test configuration saving."""

    def test_round_trip_append(self, home: Path, config_path: Path) -> None:
        """Test load, append, save, reload keeps order and adds the entry last."""
        original = load_config(config_path)
        new_plugin = GitRepo(GitProvider.GITHUB, "acme", "tools")

        config = load_config(config_path)
        add_plugin(config, new_plugin)
        save_config(config, config_path)

        reloaded = load_config(config_path)
        assert reloaded.plugins == original.plugins + [new_plugin]
        assert reloaded.plugin_dir == original.plugin_dir

    def test_append_does_not_deduplicate(self, home: Path, config_path: Path) -> None:
        """Test appending an existing plugin keeps both entries."""
        config = load_config(config_path)
        duplicate = config.plugins[0]
        add_plugin(config, duplicate)
        save_config(config, config_path)

        reloaded = load_config(config_path)
        assert reloaded.plugins.count(duplicate) == 2

    def test_save_keeps_tilde(self, home: Path, config_path: Path) -> None:
        """Test the ~ shorthand survives a save."""
        config = load_config(config_path)
        save_config(config, config_path)

        data = yaml.safe_load(config_path.read_text())
        assert data["plugin_dir"] == "~/.local/share/strand/plugins"

    def test_save_changed_plugin_dir_is_absolute(self, home: Path, tmp_path: Path, config_path: Path) -> None:
        """Test a replaced plugin_dir is written as the absolute path."""
        config = load_config(config_path)
        config.plugin_dir = tmp_path / "elsewhere"
        save_config(config, config_path)

        data = yaml.safe_load(config_path.read_text())
        assert data["plugin_dir"] == str(tmp_path / "elsewhere")

    def test_git_ref_omitted_when_unset(self, tmp_path: Path) -> None:
        """Test git_ref is only written when set."""
        config = StrandConfig(
            plugin_dir=tmp_path,
            plugins=[GitRepo(GitProvider.BITBUCKET, "u", "r")],
        )
        data = yaml.safe_load(export_config_yaml(config))

        assert data["plugins"] == [{"provider": "bitbucket", "user": "u", "repo": "r"}]

    def test_key_order(self, tmp_path: Path) -> None:
        """Test plugin_dir is written before plugins."""
        config = StrandConfig(plugin_dir=tmp_path)
        text = export_config_yaml(config)

        assert text.index("plugin_dir") < text.index("plugins:")

    def test_install_tar_scenario(self, tmp_path: Path) -> None:
        """Test appending an archive to an empty list saves exactly one entry."""
        path = tmp_path / "config.yaml"
        path.write_text(f"plugin_dir: {tmp_path / 'plugins'}\nplugins: []\n")

        config = load_config(path)
        add_plugin(config, ArchivePlugin("https://host/x.tar.gz"))
        save_config(config, path)

        data = yaml.safe_load(path.read_text())
        assert data["plugins"] == [{"url": "https://host/x.tar.gz"}]

    def test_save_creates_parent(self, tmp_path: Path) -> None:
        """Test missing parent directories are created."""
        path = tmp_path / "a" / "b" / "config.yaml"
        save_config(StrandConfig(plugin_dir=tmp_path), path)

        assert path.exists()

    def test_save_failure(self, tmp_path: Path) -> None:
        """Test an unwritable destination is a ConfigSaveError."""
        target = tmp_path / "config.yaml"
        target.mkdir()

        with pytest.raises(ConfigSaveError):
            save_config(StrandConfig(plugin_dir=tmp_path), target)


class TestInitConfig:
    """Test starter config creation."""

    def test_default_config(self, home: Path) -> None:
        """Test the default config has no plugins."""
        config = default_config()
        assert config.plugins == []
        assert config.plugin_dir_source == DEFAULT_PLUGIN_DIR
        assert config.plugin_dir == home / ".local" / "share" / "strand" / "plugins"

    def test_init_writes_file(self, home: Path, tmp_path: Path) -> None:
        """Test init creates a loadable file."""
        path = tmp_path / "config.yaml"
        init_config(path)

        config = load_config(path)
        assert config.plugins == []
        assert yaml.safe_load(path.read_text())["plugin_dir"] == DEFAULT_PLUGIN_DIR

    def test_init_refuses_overwrite(self, home: Path, config_path: Path) -> None:
        """Test an existing file is not replaced without force."""
        with pytest.raises(ConfigSaveError, match="already exists"):
            init_config(config_path)

        assert "someuser" in config_path.read_text()

    def test_init_force(self, home: Path, config_path: Path) -> None:
        """Test force overwrites the file."""
        init_config(config_path, force=True)
        assert load_config(config_path).plugins == []
