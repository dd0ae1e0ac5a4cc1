"""
Tests for configuration and logging setup
"""
import logging
from io import StringIO

import pytest
from rich.console import Console
from rich.logging import RichHandler

from phlesk.config import DEFAULT_RELEASE_URL, ConfigManager, PhleskConfig
from phlesk.log import LOGGER_NAME, setup_logging


class TestPhleskConfig:
    def test_defaults(self):
        config = PhleskConfig()

        assert config.module_id == "phlesk"
        assert config.execute_wrapper is None
        assert config.download_base_url == DEFAULT_RELEASE_URL

    def test_from_dict(self):
        config = PhleskConfig.from_dict({
            'module_id': 'Kolab',
            'execute_wrapper': '/usr/local/psa/admin/sbin/modules/kolab/kolab-execute',
            'logging': {'level': 'debug'},
            'downloads': {'base_url': 'https://mirror.example/'},
        })

        assert config.module_id == "kolab"
        assert config.var_dir == "/usr/local/psa/var/modules/kolab"
        assert config.log_level == "DEBUG"
        assert config.download_base_url == "https://mirror.example/"

    def test_to_dict_round_trip(self):
        config = PhleskConfig.from_dict({'module_id': 'seafile', 'var_dir': '/srv/seafile'})

        assert PhleskConfig.from_dict(config.to_dict()) == config


class TestConfigManager:
    def test_find_walks_up(self, tmp_path):
        (tmp_path / ".phlesk.yml").write_text("module_id: kolab\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert ConfigManager.find_config(nested) == tmp_path / ".phlesk.yml"

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "conf" / ".phlesk.yml"
        config = PhleskConfig.from_dict({'module_id': 'kolab', 'logging': {'level': 'WARNING'}})

        assert ConfigManager.save_config(config, path)
        assert ConfigManager.load_config(path) == config

    def test_empty_file(self, tmp_path):
        path = tmp_path / ".phlesk.yml"
        path.write_text("")

        assert ConfigManager.load_config(path) == PhleskConfig()

    def test_broken_file(self, tmp_path, caplog):
        path = tmp_path / ".phlesk.yml"
        path.write_text("module_id: [unclosed\n")

        with caplog.at_level(logging.WARNING, logger=LOGGER_NAME):
            assert ConfigManager.load_config(path) == PhleskConfig()

        assert "Failed to load config" in caplog.text


class TestLogging:
    @pytest.fixture(autouse=True)
    def restore_logger(self):
        logger = logging.getLogger(LOGGER_NAME)
        level, handlers = logger.level, list(logger.handlers)
        yield
        logger.setLevel(level)
        logger.handlers = handlers

    def test_module_id_prefix(self):
        output = StringIO()
        setup_logging("INFO", "kolab", Console(file=output, width=200))

        logging.getLogger("phlesk.platform.package").info("Package wget already installed.")

        assert "[kolab] Package wget already installed." in output.getvalue()

    def test_level(self):
        output = StringIO()
        setup_logging("WARNING", console=Console(file=output, width=200))

        logging.getLogger("phlesk.runner").info("hidden")

        assert "hidden" not in output.getvalue()

    def test_handlers_not_stacked(self):
        setup_logging()
        setup_logging()

        handlers = [h for h in logging.getLogger(LOGGER_NAME).handlers if isinstance(h, RichHandler)]
        assert len(handlers) == 1
