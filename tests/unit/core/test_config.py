"""
Unit Tests for Settings
"""
from aether.core.config import Settings, parse_name_list


class TestSettings:
    """Test environment-driven settings"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_MODEL", raising=False)
        current = Settings(_env_file=None)

        assert current.APP_NAME == "Aether"
        assert current.MAX_PROMPT_LENGTH == 4000
        assert current.INDEX_FILE_NAMES == ["index.html", "index.htm"]

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("REPLAY_CHUNK_SIZE", "8")
        monkeypatch.setenv("ENVIRONMENT", "production")

        current = Settings(_env_file=None)

        assert current.REPLAY_CHUNK_SIZE == 8
        assert current.is_production is True

    def test_index_names_from_env(self, monkeypatch):
        monkeypatch.setenv("INDEX_FILE_NAMES_STR", "index.html, home.html")
        assert Settings(_env_file=None).INDEX_FILE_NAMES == ["index.html", "home.html"]


class TestParseNameList:
    """Test comma-separated list parsing"""

    def test_string(self):
        assert parse_name_list(" a.html, ,b.htm ") == ["a.html", "b.htm"]

    def test_list_passthrough(self):
        assert parse_name_list(["x"]) == ["x"]

    def test_other_values(self):
        assert parse_name_list(None) == []
