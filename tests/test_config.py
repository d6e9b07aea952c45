"""Tests for configuration loading and validation."""

from pathlib import Path

import yaml

from src.utils.config import (
    AdmissionsConfig,
    AppConfig,
    ImportConfig,
    OCRConfig,
    PreprocessingConfig,
    apply_env_overrides,
    load_config,
)


class TestPreprocessingConfig:
    """Tests for PreprocessingConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = PreprocessingConfig()
        assert cfg.target_width == 1800
        assert cfg.contrast_method == "stretch"
        assert cfg.finish == "sharpen"
        assert cfg.clahe_clip_limit == 2.0

    def test_override(self) -> None:
        cfg = PreprocessingConfig(finish="binarize", clahe_clip_limit=3.5)
        assert cfg.finish == "binarize"
        assert cfg.clahe_clip_limit == 3.5


class TestOCRConfig:
    """Tests for OCRConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.engine == "tesseract"
        assert cfg.languages == ["eng"]
        assert cfg.psm == 3
        assert cfg.tesseract_cmd is None
        assert cfg.concurrent_sessions is False

    def test_custom_languages(self) -> None:
        cfg = OCRConfig(languages=["eng", "hin"], psm=6)
        assert cfg.languages == ["eng", "hin"]
        assert cfg.psm == 6


class TestAppConfig:
    """Tests for the top-level AppConfig."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert cfg.server.port == 3000
        assert cfg.storage.tmp_dir == "tmp"
        assert isinstance(cfg.admissions, AdmissionsConfig)
        assert cfg.admissions.push_enabled is False
        assert isinstance(cfg.imports, ImportConfig)
        assert cfg.imports.source_api is None
        assert cfg.imports.interval_seconds == 3600
        assert cfg.log_level == "INFO"

    def test_nested_override(self) -> None:
        cfg = AppConfig(
            preprocessing=PreprocessingConfig(target_width=1200),
            log_level="DEBUG",
        )
        assert cfg.preprocessing.target_width == 1200
        assert cfg.log_level == "DEBUG"


class TestEnvOverrides:
    """Tests for environment variable overrides."""

    def test_all_sections(self) -> None:
        environ = {
            "PORT": "8080",
            "TMP_DIR": "/var/tmp/forms",
            "LANGS": "eng, hin",
            "PUSH_TO_ADMISSIONS": "true",
            "UPLOADED_LEADS_URL": "https://adm.test/uploadedLeads",
            "LEAD_STATUS_URL": "https://adm.test/leadStatusUpdate",
            "ADMISSIONS_TOKEN": "secret",
            "SOURCE_API": "https://src.test/forms",
            "RECOGNITION_ENGINE": "vision",
            "OPENAI_API_KEY": "sk-test",
            "DATABASE_URL": "mysql+pymysql://u:p@db/forms",
            "LOG_LEVEL": "DEBUG",
        }
        cfg = AppConfig(**apply_env_overrides({}, environ))

        assert cfg.server.port == 8080
        assert cfg.storage.tmp_dir == "/var/tmp/forms"
        assert cfg.storage.database_url == "mysql+pymysql://u:p@db/forms"
        assert cfg.ocr.languages == ["eng", "hin"]
        assert cfg.ocr.engine == "vision"
        assert cfg.vision.api_key == "sk-test"
        assert cfg.admissions.push_enabled is True
        assert cfg.admissions.token == "secret"
        assert cfg.imports.source_api == "https://src.test/forms"
        assert cfg.log_level == "DEBUG"

    def test_push_flag_requires_literal_true(self) -> None:
        raw = apply_env_overrides({}, {"PUSH_TO_ADMISSIONS": "yes"})
        assert raw["admissions"]["push_enabled"] is False

    def test_empty_values_ignored(self) -> None:
        raw = apply_env_overrides({"server": {"port": 9000}}, {"PORT": "", "SOURCE_API": ""})
        assert raw == {"server": {"port": 9000}}

    def test_env_wins_over_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"server": {"port": 4000, "host": "127.0.0.1"}}))

        cfg = load_config(config_file, environ={"PORT": "5000"})

        assert cfg.server.port == 5000
        assert cfg.server.host == "127.0.0.1"


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_load_default_config(self, project_root: Path) -> None:
        cfg = load_config(project_root / "configs" / "config.yaml", environ={})
        assert isinstance(cfg, AppConfig)
        assert cfg.ocr.languages == ["eng"]
        assert cfg.preprocessing.target_width == 1800

    def test_load_missing_file_returns_defaults(self) -> None:
        cfg = load_config(Path("/nonexistent/path/config.yaml"), environ={})
        assert isinstance(cfg, AppConfig)
        assert cfg.server.port == 3000

    def test_load_custom_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "preprocessing": {"finish": "binarize"},
            "ocr": {"languages": ["deu"], "psm": 6},
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_file, environ={})
        assert cfg.preprocessing.finish == "binarize"
        assert cfg.ocr.languages == ["deu"]
        assert cfg.ocr.psm == 6
        assert cfg.log_level == "DEBUG"

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        cfg = load_config(config_file, environ={})
        assert isinstance(cfg, AppConfig)

    def test_load_none_defaults_to_standard_path(self) -> None:
        cfg = load_config(environ={})
        assert isinstance(cfg, AppConfig)
