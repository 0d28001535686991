"""Tests for configuration loading."""

import io
import tomllib

import pytest

from pyconcolic.config import (
    DEFAULT_TIMEOUT_MS,
    ConcolicConfig,
    configure_logging_from_config,
    find_config_file,
    generate_default_config,
    init_config,
    load_config,
)
from pyconcolic.logging import ConcolicLogger, LogLevel, get_logger, set_logger


def test_defaults():
    config = ConcolicConfig()
    assert config.solver.timeout_ms == DEFAULT_TIMEOUT_MS == 10_000
    assert config.solver.max_mutations is None
    assert config.stages.progress_file is None
    assert config.output.log_level is LogLevel.NORMAL


def test_load_standalone_file(tmp_path):
    path = tmp_path / "pyconcolic.toml"
    path.write_text(
        "[solver]\ntimeout_ms = 2500\nmax_mutations = 8\n\n[output]\nlevel = \"trace\"\ncolor = false\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.solver.timeout_ms == 2500
    assert config.solver.max_mutations == 8
    assert config.output.log_level is LogLevel.TRACE
    assert config.output.color is False
    assert config.config_file == path
    assert config.project_root == tmp_path


def test_load_from_pyproject(tmp_path):
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "x"\n\n[tool.pyconcolic.stages]\nprogress_file = "progress.json"\n',
        encoding="utf-8",
    )
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert find_config_file(nested) == tmp_path / "pyproject.toml"
    config = load_config(start_dir=nested)
    assert config.stages.progress_file == "progress.json"
    assert config.solver.timeout_ms == DEFAULT_TIMEOUT_MS


def test_invalid_toml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "pyconcolic.toml"
    path.write_text("[solver\n", encoding="utf-8")
    stream = io.StringIO()
    previous = get_logger()
    set_logger(ConcolicLogger(color=False, stream=stream))
    try:
        config = load_config(path)
    finally:
        set_logger(previous)
    assert config.solver.timeout_ms == DEFAULT_TIMEOUT_MS
    assert "Failed to parse" in stream.getvalue()


def test_rejects_non_positive_timeout(tmp_path):
    path = tmp_path / "pyconcolic.toml"
    path.write_text("[solver]\ntimeout_ms = 0\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_generated_config_round_trips(tmp_path):
    data = tomllib.loads(generate_default_config())
    assert data["tool"]["pyconcolic"]["solver"]["timeout_ms"] == DEFAULT_TIMEOUT_MS
    path = init_config(tmp_path)
    assert load_config(path).to_dict() == ConcolicConfig().to_dict()
    with pytest.raises(FileExistsError):
        init_config(tmp_path)


def test_output_section_configures_the_global_logger(tmp_path):
    path = tmp_path / "pyconcolic.toml"
    path.write_text(
        '[output]\nlevel = "trace"\ncolor = false\nlog_file = "run.log"\n',
        encoding="utf-8",
    )
    previous = get_logger()
    try:
        logger = configure_logging_from_config(load_config(path))
        assert get_logger() is logger
        assert logger.level is LogLevel.TRACE
        logger.trace("flip sat", category="concolic")
        logger.close()
    finally:
        set_logger(previous)
    assert "[concolic] flip sat" in (tmp_path / "run.log").read_text(encoding="utf-8")


def test_unknown_output_level_is_rejected(tmp_path):
    path = tmp_path / "pyconcolic.toml"
    path.write_text('[output]\nlevel = "loud"\n', encoding="utf-8")
    with pytest.raises(ValueError):
        configure_logging_from_config(load_config(path))
