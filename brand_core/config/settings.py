"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置，优先级依次递减。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("BRAND_CORE_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """brand_core 运行配置。"""

    # ---- Provider 相关配置 ----
    default_provider: str = Field(
        default="ollama",
        description="默认使用的 Provider 名称，例如 openai、gemini、ollama",
    )
    # 调用方未传 credential 时使用的兜底密钥
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API 密钥")
    gemini_api_key: Optional[str] = Field(default=None, description="Gemini API 密钥")
    ollama_api_key: Optional[str] = Field(default=None, description="Ollama Cloud API 密钥")
    http_timeout: float = Field(default=60.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 存储与日志 ----
    storage_root: str = Field(default=".storage", description="存储根目录")
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    # ---- 上下文裁剪 ----
    max_context_messages: int = Field(default=20, ge=1, le=200, description="最大上下文消息数")
    max_active_tasks: int = Field(default=10, ge=1, description="品牌上下文中展示的活跃任务数上限")
    max_recent_activities: int = Field(default=10, ge=1, description="品牌上下文中的最近动态条数")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("default_provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("log_level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return v.strip().upper()

    def api_key_for(self, provider: str) -> Optional[str]:
        """返回某个 Provider 的兜底密钥（未配置则为 None）。"""

        return getattr(self, f"{provider.lower()}_api_key", None)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
