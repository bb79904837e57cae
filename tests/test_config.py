# tests/test_config.py
import json

from auto_insights.config import Config, create_config_template, get_config, reload_config


class TestConfig:

    def test_defaults(self):
        config = Config()

        assert config.thresholds.MISSING_PCT_FLAG == 10
        assert config.limits.TOP_CORRELATIONS == 5
        assert config.charts.HIST_BINS == 12
        assert config.validate_config() == []

    def test_file_overrides(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({
            'thresholds': {'CORRELATION_FLAG': 0.5, 'UNKNOWN_KEY': 1},
            'charts': {'HIST_BINS': 20},
            'narrative': {'API_KEY': 'from-file'},
            'logging_level': 'DEBUG',
        }))

        config = Config(str(path))

        assert config.thresholds.CORRELATION_FLAG == 0.5
        assert not hasattr(config.thresholds, 'UNKNOWN_KEY')
        assert config.charts.HIST_BINS == 20
        assert config.narrative.API_KEY != 'from-file'
        assert config.logging_level == 'DEBUG'

    def test_unreadable_file_keeps_defaults(self, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{not json')

        config = Config(str(path))
        assert config.thresholds.CORRELATION_FLAG == 0.7

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv('AI_PROVIDER', 'NONE')
        monkeypatch.setenv('GROQ_API_KEY', 'secret')
        monkeypatch.setenv('TOP_CORRELATIONS', '8')
        monkeypatch.setenv('DEBUG_MODE', 'true')

        config = Config()

        assert config.narrative.PROVIDER == 'none'
        assert config.narrative.API_KEY == 'secret'
        assert config.limits.TOP_CORRELATIONS == 8
        assert config.debug_mode is True

    def test_validation_issues(self):
        config = Config()
        config.thresholds.CORRELATION_FLAG = 1.5
        config.limits.MIN_PAIRED_POINTS = 1
        config.charts.HIST_BINS = 0

        issues = config.validate_config()

        assert any('CORRELATION_FLAG' in i for i in issues)
        assert any('MIN_PAIRED_POINTS' in i for i in issues)
        assert any('histogram bins' in i for i in issues)

    def test_save_excludes_secrets(self, tmp_path, monkeypatch):
        monkeypatch.setenv('GROQ_API_KEY', 'secret')
        path = tmp_path / 'saved.json'

        Config().save_config(str(path))
        saved = json.loads(path.read_text())

        assert 'API_KEY' not in saved['narrative']
        assert saved['limits']['TOP_CORRELATIONS'] == 5
        assert 'secret' not in path.read_text()

    def test_template_round_trip(self, tmp_path):
        path = tmp_path / 'template.json'
        create_config_template(str(path))

        config = Config(str(path))
        assert config.validate_config() == []

    def test_global_instance(self):
        first = reload_config()
        assert get_config() is first
        assert reload_config() is not first
