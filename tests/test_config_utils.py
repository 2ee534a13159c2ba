"""
Tests for YAML configuration, logging setup and performance monitoring
"""

import json
import logging
import time

import pytest
import yaml

from errors import InvalidParameterError
from config.config import CryptoConfig, ElectionConfig, SystemConfig, config_to_dict, load_config, save_config
from utils.utils import (
    PerformanceMonitor,
    convert_to_serializable,
    create_performance_report,
    format_bytes,
    format_duration,
    get_system_info,
    save_results,
    setup_logging
)


@pytest.fixture
def system_config(tmp_path):
    return SystemConfig(
        election=ElectionConfig(num_guardians=4, quorum=2, date="2024-11-05", info="county"),
        crypto=CryptoConfig(parameters="toy-q64p256", csprng_seed="abc", dlog_table_bits=8),
        log_dir=tmp_path / "logs",
        results_dir=tmp_path / "results",
        log_level="debug")


class TestConfig:

    def test_defaults_when_missing(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config(tmp_path / "absent.yaml")
        assert config.election.num_guardians == 5
        assert config.election.quorum == 3
        assert config.crypto.parameters == "standard"
        assert config.crypto.csprng_seed is None

    def test_yaml_round_trip(self, tmp_path, system_config):
        path = tmp_path / "config.yaml"
        save_config(system_config, path)
        loaded = load_config(path)
        assert config_to_dict(loaded) == config_to_dict(system_config)
        assert loaded.log_level == "DEBUG"

    def test_partial_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({
            'crypto': {'parameters': 'toy-q7p16', 'csprng_seed': 17},
            'log_dir': str(tmp_path / "l"),
            'results_dir': str(tmp_path / "r"),
        }))
        config = load_config(path)
        assert config.crypto.parameters == "toy-q7p16"
        assert config.crypto.csprng_seed == "17"
        assert config.election.num_guardians == 5

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("election: [unclosed\n")
        with pytest.raises(InvalidParameterError):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(InvalidParameterError):
            load_config(path)

    def test_bad_quorum(self):
        with pytest.raises(InvalidParameterError):
            ElectionConfig(num_guardians=3, quorum=4)

    def test_unknown_parameter_set(self):
        with pytest.raises(InvalidParameterError):
            CryptoConfig(parameters="huge")

    def test_unknown_log_level(self, tmp_path):
        with pytest.raises(InvalidParameterError):
            SystemConfig(log_dir=tmp_path / "l", results_dir=tmp_path / "r", log_level="LOUD")

    def test_debug_mode_forces_debug(self, tmp_path):
        config = SystemConfig(log_dir=tmp_path / "l", results_dir=tmp_path / "r",
                              log_level="ERROR", enable_debug_mode=True)
        assert config.log_level == "DEBUG"
        assert (tmp_path / "l").is_dir()


class TestLogging:

    def test_writes_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "core.log"
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("INFO", log_file)
            logging.getLogger("election.test").info("ballot accepted")
            for handler in root.handlers:
                handler.flush()
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
                handler.close()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)
        content = log_file.read_text()
        assert "ballot accepted" in content
        assert " - election.test - INFO - " in content


class TestPerformanceMonitor:

    def test_summary(self):
        monitor = PerformanceMonitor()
        for _ in range(3):
            with monitor.start_operation("encrypt"):
                time.sleep(0.001)
        with monitor.start_operation("verify"):
            pass

        summary = monitor.get_summary()
        assert summary['total_operations'] == 4
        assert summary['operations']['encrypt']['count'] == 3
        assert summary['operations']['encrypt']['min_duration'] > 0
        assert summary['operations']['verify']['std_duration'] == 0.0
        assert "ENCRYPT" in create_performance_report(monitor)

    def test_records_failed_operation(self):
        monitor = PerformanceMonitor()
        with pytest.raises(RuntimeError):
            with monitor.start_operation("failing"):
                raise RuntimeError("boom")
        assert monitor.metrics[0].additional_data == {'exception': True}

    def test_empty_and_reset(self, tmp_path):
        monitor = PerformanceMonitor()
        assert monitor.get_summary()['total_operations'] == 0
        with monitor.start_operation("x"):
            pass
        monitor.save_metrics(tmp_path / "metrics.json")
        assert json.loads((tmp_path / "metrics.json").read_text())['summary']['total_operations'] == 1
        monitor.reset()
        assert monitor.metrics == []


class TestReporting:

    def test_save_results(self, tmp_path):
        results = {'election': {'label': 'Test'}, 'tally': {'Mayor': [1, 2]},
                   'integrity_checks': {'ballots_verified': True}, 'raw': b"\x01\xab"}
        path = tmp_path / "out" / "report.json"
        save_results(results, path)

        saved = json.loads(path.read_text())
        assert saved['data']['tally'] == {'Mayor': [1, 2]}
        assert saved['data']['raw'] == "01AB"
        summary = (tmp_path / "out" / "report_summary.txt").read_text()
        assert "ballots_verified:  PASSED" in summary

    def test_convert_prefers_to_dict(self, manifest):
        assert convert_to_serializable({'m': manifest}) == {'m': manifest.to_dict()}

    def test_system_info(self):
        info = get_system_info()
        assert 'python_version' in info
        assert 'cpu_count_logical' in info

    def test_formatting(self):
        assert format_duration(0.5) == "500.0ms"
        assert format_duration(2.5) == "2.50s"
        assert format_duration(125) == "2m 5.0s"
        assert format_duration(3725) == "1h 2m 5.0s"
        assert format_bytes(512) == "512.0B"
        assert format_bytes(2048) == "2.0KB"
