"""配置模块 -- 可通过环境变量覆盖

包含数据库路径等可配置常量，以及会话引擎的阈值配置 EngineConfig。
"""

import os
from datetime import time, timedelta
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("SIGNALNOISE_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "SIGNALNOISE_DB_PATH",
        str(_get_base_dir() / "sqlite" / "signalnoise.db"),
    )


# 每日 Signal 任务上限（Signal 任务应保持在 3-5 个）
MAX_SIGNAL_TASKS: int = int(os.environ.get("SIGNALNOISE_MAX_SIGNAL_TASKS", "5"))


class EngineConfig(BaseModel):
    """会话引擎配置 -- 从环境变量加载

    环境变量:
        SIGNALNOISE_MERGE_THRESHOLD_MIN: 会话合并阈值（分钟，默认 15）
        SIGNALNOISE_SLOT_PROXIMITY_MIN: 计划时间块就近启动窗口（分钟，默认 30）
        SIGNALNOISE_GOLDEN_RATIO: Golden Ratio 阈值（默认 0.8）
        SIGNALNOISE_GOLDEN_MIN_SIGNAL_MIN: 达成 Golden 的最少 Signal 分钟数（默认 60）
        SIGNALNOISE_DAY_CUTOFF: 日切时间 HH:MM（默认 23:59）
    """

    session_merge_threshold_minutes: int = Field(
        default=15,
        ge=0,
        description="停止后在此间隔内再次开始视为同一会话（含边界）",
    )
    slot_proximity_minutes: int = Field(
        default=30,
        ge=0,
        description="计划开始时间距 now 在此范围内的时间块可直接启动",
    )
    short_commitment_minutes: int = Field(
        default=5,
        ge=0,
        description="普通任务的承诺阈值，达到后才同步日历",
    )
    long_commitment_minutes: int = Field(
        default=10,
        ge=0,
        description="长任务的承诺阈值",
    )
    long_task_minutes: int = Field(
        default=120,
        ge=1,
        description="预估时长达到此值视为长任务",
    )
    auto_end_grace_seconds: int = Field(
        default=15,
        ge=0,
        description="计划结束后多少秒触发自动结束",
    )
    default_ad_hoc_minutes: int = Field(
        default=60,
        ge=1,
        description="无预估时长时临时时间块的默认长度",
    )
    resume_extension_minutes: int = Field(
        default=30,
        ge=1,
        description="恢复已过计划结束时间的会话且预估已用完时延长的分钟数",
    )
    golden_ratio: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Golden Ratio 阈值",
    )
    golden_min_signal_minutes: int = Field(
        default=60,
        ge=0,
        description="达成 Golden 所需的最少 Signal 分钟数",
    )
    rollover_completion_threshold: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="实际/预估低于此比例的未完成任务进入顺延建议",
    )
    day_cutoff_hour: int = Field(default=23, ge=0, le=23, description="日切小时")
    day_cutoff_minute: int = Field(default=59, ge=0, le=59, description="日切分钟")

    @property
    def session_merge_threshold(self) -> timedelta:
        return timedelta(minutes=self.session_merge_threshold_minutes)

    @property
    def slot_proximity(self) -> timedelta:
        return timedelta(minutes=self.slot_proximity_minutes)

    @property
    def auto_end_grace(self) -> timedelta:
        return timedelta(seconds=self.auto_end_grace_seconds)

    @property
    def day_cutoff(self) -> time:
        return time(self.day_cutoff_hour, self.day_cutoff_minute)


DEFAULT_ENGINE_CONFIG = EngineConfig()

_INT_ENV_VARS: dict[str, str] = {
    "SIGNALNOISE_MERGE_THRESHOLD_MIN": "session_merge_threshold_minutes",
    "SIGNALNOISE_SLOT_PROXIMITY_MIN": "slot_proximity_minutes",
    "SIGNALNOISE_GOLDEN_MIN_SIGNAL_MIN": "golden_min_signal_minutes",
}


def load_engine_config() -> EngineConfig:
    """从环境变量加载引擎配置

    非法值记录 warning 并回退默认值，不阻塞启动。

    Returns:
        EngineConfig 实例
    """
    kwargs: dict = {}

    for env_var, field_name in _INT_ENV_VARS.items():
        if val := os.environ.get(env_var):
            try:
                kwargs[field_name] = int(val)
            except ValueError:
                log.warning(
                    "invalid_engine_config",
                    env_var=env_var,
                    value=val,
                    fallback=EngineConfig.model_fields[field_name].default,
                )

    if val := os.environ.get("SIGNALNOISE_GOLDEN_RATIO"):
        try:
            kwargs["golden_ratio"] = float(val)
        except ValueError:
            log.warning(
                "invalid_engine_config",
                env_var="SIGNALNOISE_GOLDEN_RATIO",
                value=val,
                fallback=0.8,
            )

    if val := os.environ.get("SIGNALNOISE_DAY_CUTOFF"):
        try:
            hour_str, minute_str = val.split(":", 1)
            kwargs["day_cutoff_hour"] = int(hour_str)
            kwargs["day_cutoff_minute"] = int(minute_str)
        except ValueError:
            kwargs.pop("day_cutoff_hour", None)
            log.warning(
                "invalid_engine_config",
                env_var="SIGNALNOISE_DAY_CUTOFF",
                value=val,
                fallback="23:59",
            )

    return EngineConfig(**kwargs)
