"""EngineConfig + load_engine_config 单元测试

验证环境变量映射、默认值与非法值回退。
"""

import json
import logging
from datetime import UTC, date, datetime, time, timedelta

import pytest
import structlog
from pydantic import ValidationError
from signalnoise.clock import FixedClock, SystemClock
from signalnoise.config import EngineConfig, get_db_path, load_engine_config
from signalnoise.logging_config import bind_day_context, setup_logging

_ENGINE_ENV_VARS = [
    "SIGNALNOISE_MERGE_THRESHOLD_MIN",
    "SIGNALNOISE_SLOT_PROXIMITY_MIN",
    "SIGNALNOISE_GOLDEN_RATIO",
    "SIGNALNOISE_GOLDEN_MIN_SIGNAL_MIN",
    "SIGNALNOISE_DAY_CUTOFF",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENGINE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestEngineConfig:
    """EngineConfig 数据模型测试"""

    def test_default_values(self):
        config = EngineConfig()
        assert config.session_merge_threshold == timedelta(minutes=15)
        assert config.slot_proximity == timedelta(minutes=30)
        assert config.auto_end_grace == timedelta(seconds=15)
        assert config.day_cutoff == time(23, 59)
        assert config.golden_ratio == 0.8

    def test_golden_ratio_range(self):
        with pytest.raises(ValidationError):
            EngineConfig(golden_ratio=1.5)

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError):
            EngineConfig(session_merge_threshold_minutes=-1)


class TestLoadEngineConfig:
    """load_engine_config() 环境变量映射测试"""

    def test_default_when_no_env(self, clean_env):
        assert load_engine_config() == EngineConfig()

    def test_env_overrides(self, clean_env):
        clean_env.setenv("SIGNALNOISE_MERGE_THRESHOLD_MIN", "10")
        clean_env.setenv("SIGNALNOISE_SLOT_PROXIMITY_MIN", "45")
        clean_env.setenv("SIGNALNOISE_GOLDEN_RATIO", "0.75")
        clean_env.setenv("SIGNALNOISE_GOLDEN_MIN_SIGNAL_MIN", "90")
        clean_env.setenv("SIGNALNOISE_DAY_CUTOFF", "22:30")

        config = load_engine_config()
        assert config.session_merge_threshold_minutes == 10
        assert config.slot_proximity_minutes == 45
        assert config.golden_ratio == 0.75
        assert config.golden_min_signal_minutes == 90
        assert config.day_cutoff == time(22, 30)

    @pytest.mark.parametrize(
        "env_var,value",
        [
            ("SIGNALNOISE_MERGE_THRESHOLD_MIN", "abc"),
            ("SIGNALNOISE_GOLDEN_RATIO", "high"),
            ("SIGNALNOISE_DAY_CUTOFF", "late"),
            ("SIGNALNOISE_DAY_CUTOFF", "22:xx"),
        ],
    )
    def test_invalid_value_falls_back(self, clean_env, env_var, value):
        clean_env.setenv(env_var, value)
        assert load_engine_config() == EngineConfig()


class TestDbPath:
    def test_explicit_path(self, monkeypatch):
        monkeypatch.setenv("SIGNALNOISE_DB_PATH", "/tmp/custom.db")
        assert get_db_path() == "/tmp/custom.db"

    def test_data_dir(self, monkeypatch):
        monkeypatch.delenv("SIGNALNOISE_DB_PATH", raising=False)
        monkeypatch.setenv("SIGNALNOISE_DATA_DIR", "/var/signalnoise")
        assert get_db_path() == "/var/signalnoise/sqlite/signalnoise.db"


class TestClock:
    def test_fixed_clock_requires_tz(self):
        with pytest.raises(ValueError):
            FixedClock(datetime(2026, 10, 14, 9, 0))

    def test_fixed_clock_advance(self):
        clock = FixedClock(datetime(2026, 10, 14, 9, 0, tzinfo=UTC))
        assert clock.advance(minutes=90) == datetime(2026, 10, 14, 10, 30, tzinfo=UTC)
        assert clock.now() == datetime(2026, 10, 14, 10, 30, tzinfo=UTC)

    def test_system_clock_is_aware(self):
        assert SystemClock().now().tzinfo is not None
        assert SystemClock("Asia/Shanghai").now().utcoffset() == timedelta(hours=8)


class TestLogging:
    """structlog 配置"""

    def test_json_output_stringifies_temporal(self, capsys):
        setup_logging(log_format="json", log_level="INFO")
        try:
            bind_day_context(date(2026, 10, 14))
            structlog.get_logger("signalnoise.test").info(
                "timer_stopped",
                stopped_at=datetime(2026, 10, 14, 9, 20, tzinfo=UTC),
                session=timedelta(minutes=20),
            )
            line = capsys.readouterr().err.strip().splitlines()[-1]
            record = json.loads(line)
            assert record["event"] == "timer_stopped"
            assert record["day"] == "2026-10-14"
            assert record["stopped_at"] == "2026-10-14T09:20:00+00:00"
            assert record["session"] == 1200
            assert record["level"] == "info"
        finally:
            structlog.contextvars.clear_contextvars()
            structlog.reset_defaults()
            logging.getLogger().handlers.clear()
