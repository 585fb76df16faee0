from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, PositiveFloat, validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv


class AppSection(BaseModel):
    environment: Literal["development", "production"] = "development"
    log_level: str = "INFO"
    log_file: str = "logs/winbig.log"
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


class SimulatorConfig(BaseModel):
    epsilon: PositiveFloat = 1e-6


class SnapshotConfig(BaseModel):
    source: Literal["redis", "clob", "memory"] = "redis"
    key_prefix: str = "market:"
    timeout_seconds: PositiveFloat = 3.0
    retries: int = 3

    @validator("retries")
    def retries_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("retries must be >= 0")
        return v


class RedisConfig(BaseModel):
    rest_url: str | None = None
    rest_token: str | None = None


class ClobConfig(BaseModel):
    host: str = "https://clob.polymarket.com"
    gamma_host: str = "https://gamma-api.polymarket.com"


class AppConfig(BaseModel):
    app: AppSection = Field(default_factory=AppSection)
    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)
    snapshots: SnapshotConfig = Field(default_factory=SnapshotConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    clob: ClobConfig = Field(default_factory=ClobConfig)


class EnvSettings(BaseSettings):
    UPSTASH_REDIS_REST_URL: str | None = None
    UPSTASH_REDIS_REST_TOKEN: str | None = None
    ENVIRONMENT: Literal["development", "production"] | None = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def _load_yaml_config(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: Path | None = None) -> AppConfig:
    load_dotenv()
    if config_path is None:
        config_path = Path("config.yaml")
    data = _load_yaml_config(config_path)
    cfg = AppConfig(**data)

    env = EnvSettings()
    if env.UPSTASH_REDIS_REST_URL:
        cfg.redis.rest_url = env.UPSTASH_REDIS_REST_URL
    if env.UPSTASH_REDIS_REST_TOKEN:
        cfg.redis.rest_token = env.UPSTASH_REDIS_REST_TOKEN
    if env.ENVIRONMENT:
        cfg.app.environment = env.ENVIRONMENT

    return cfg
