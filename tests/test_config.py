import json
import sys
from pathlib import Path

import pytest

from site_controller.config import (
    ConfigNotFoundError,
    ConfigParseError,
    load_config,
    resolve_config_path,
)
from site_controller.models import SiteGroup


def write(tmp_path, data, name="sites.json"):
    path = tmp_path / name
    path.write_text(data if isinstance(data, str) else json.dumps(data, indent=2))
    return path


class TestLoadConfig:

    def test_loads_sites_in_order(self, tmp_path):
        path = write(tmp_path, {"sites": [
            {"name": "mysite1", "appPools": ["mysite1"], "websites": ["mysite1"],
             "services": ["solr-mysite1"], "warm": ["http://localhost"]},
            {"name": "mysite2", "appPools": ["a", "b"], "websites": [], "services": []},
        ]})

        groups = load_config(path)

        assert groups == [
            SiteGroup("mysite1", ["mysite1"], ["mysite1"], ["solr-mysite1"], ["http://localhost"]),
            SiteGroup("mysite2", ["a", "b"], [], [], []),
        ]

    def test_missing_and_null_members_are_empty(self, tmp_path):
        path = write(tmp_path, {"sites": [{"name": "bare", "services": None, "warm": None}]})

        (group,) = load_config(path)

        assert group.app_pools == group.websites == group.services == group.warm == []

    def test_utf8_bom(self, tmp_path):
        path = tmp_path / "sites.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps({"sites": [{"name": "x"}]}).encode())

        assert [g.name for g in load_config(path)] == ["x"]

    def test_tab_indented_json(self, tmp_path):
        path = write(tmp_path, '{\n\t"sites": [\n\t\t{"name": "a", "appPools": ["a"]}\n\t]\n}')

        assert load_config(path) == [SiteGroup("a", app_pools=["a"])]

    def test_compact_json(self, tmp_path):
        path = write(tmp_path, '{"sites":[{"name":"a","websites":["w"],"warm":["http:\\/\\/a"]}]}')

        assert load_config(path) == [SiteGroup("a", websites=["w"], warm=["http://a"])]

    def test_surrogate_pair_escape(self, tmp_path):
        path = write(tmp_path, '{"sites": [{"name": "caf\\u00e9 \\ud83d\\ude00"}]}')

        (group,) = load_config(path)

        assert group.name == "café \U0001F600"

    def test_empty_sites(self, tmp_path):
        assert load_config(write(tmp_path, {"sites": []})) == []

    def test_yaml_accepted(self, tmp_path):
        path = write(tmp_path, "sites:\n  - name: y\n    appPools: [p]\n", name="sites.yaml")

        assert load_config(path) == [SiteGroup("y", app_pools=["p"])]

    def test_yaml_syntax_in_json_file(self, tmp_path):
        with pytest.raises(ConfigParseError):
            load_config(write(tmp_path, "sites:\n  - name: y\n"))

    def test_not_found(self, tmp_path):
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "missing.json")

    @pytest.mark.parametrize("content", [
        '{"sites": [',
        '["not", "an", "object"]',
        '{"sites": {"name": "x"}}',
        '{"sites": [{"appPools": []}]}',
        '{"sites": [{"name": "x", "appPools": "x"}]}',
        '{"sites": [{"name": "x", "services": [1, 2]}]}',
    ])
    def test_parse_errors(self, tmp_path, content):
        with pytest.raises(ConfigParseError):
            load_config(write(tmp_path, content))


class TestResolveConfigPath:

    def test_explicit(self, monkeypatch):
        monkeypatch.setenv("SITE_CONTROLLER_CONFIG", "other.json")
        assert resolve_config_path("conf/sites.json") == Path("conf/sites.json")

    def test_default_next_to_executable(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SITE_CONTROLLER_CONFIG", raising=False)
        monkeypatch.setattr(sys, "argv", [str(tmp_path / "site-controller")])

        assert resolve_config_path() == tmp_path.resolve() / "sites.json"

    def test_env_relative_to_executable(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SITE_CONTROLLER_CONFIG", "prod.json")
        monkeypatch.setattr(sys, "argv", [str(tmp_path / "site-controller")])

        assert resolve_config_path() == tmp_path.resolve() / "prod.json"

    def test_env_absolute(self, monkeypatch, tmp_path):
        target = tmp_path / "abs.json"
        monkeypatch.setenv("SITE_CONTROLLER_CONFIG", str(target))

        assert resolve_config_path() == target
