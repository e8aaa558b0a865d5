"""
Settings 테스트
"""
import pytest
from pydantic import ValidationError

from conftest import make_settings


class TestSettings:

    def test_credentials_configured(self, tmp_path):
        assert make_settings(tmp_path).credentials_configured

    @pytest.mark.parametrize("key", ["OPENAI_API_KEY", "AZURE_SPEECH_KEY"])
    @pytest.mark.parametrize("value", ["", "-", "  "])
    def test_placeholder_key_is_not_configured(self, tmp_path, key, value):
        assert not make_settings(tmp_path, **{key: value}).credentials_configured

    def test_allowed_origins_list(self, tmp_path):
        config = make_settings(tmp_path, CORS_ALLOWED_ORIGINS="http://a.test, http://b.test")
        assert config.allowed_origins_list == ["http://a.test", "http://b.test"]

    def test_assets_dir_defaults_to_project_audios(self, tmp_path):
        config = make_settings(tmp_path, ASSETS_DIR=None)
        assert config.assets_dir.name == "audios"

    def test_settings_are_immutable(self, tmp_path):
        config = make_settings(tmp_path)
        with pytest.raises(ValidationError):
            config.MAX_FRAGMENTS = 10

    @pytest.mark.parametrize("field", ["MAX_FRAGMENTS", "PIPELINE_CONCURRENCY"])
    @pytest.mark.parametrize("value", [0, -1])
    def test_pipeline_limits_must_be_positive(self, tmp_path, field, value):
        with pytest.raises(ValidationError):
            make_settings(tmp_path, **{field: value})
