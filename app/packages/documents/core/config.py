"""配置模块：数据库、会话、令牌、日志与文件存储（上传根目录、归档目录）的设置。"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# 项目根目录：相对路径形式的上传、日志目录均以此为基准
BASE_DIR = Path(__file__).resolve().parents[4]


def _load_environment() -> None:
    """加载根目录下的 ``.env``；设置 ``ENV_FILE`` 时改为加载该文件，并覆盖已有环境变量。"""
    env_file = os.getenv("ENV_FILE")
    if env_file:
        load_dotenv(BASE_DIR / env_file, override=True, encoding="utf-8")
    else:
        load_dotenv(BASE_DIR / ".env", override=False, encoding="utf-8")


_load_environment()


class Settings(BaseSettings):
    """文档库服务的全部配置项，字段均可通过同名环境变量（见 ``alias``）覆盖。"""

    project_name: str = Field(default="Document Vault API", alias="PROJECT_NAME")
    api_v1_str: str = Field(default="/api/v1", alias="API_V1_STR")
    debug: bool = Field(default=False, alias="DEBUG")

    # 显式指定时优先于下方 PostgreSQL 分项配置（测试环境使用 SQLite）
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    database_host: str = Field(default="localhost", alias="DATABASE_HOST")
    database_port: int = Field(default=5432, alias="DATABASE_PORT")
    database_user: str = Field(default="postgres", alias="DATABASE_USER")
    database_password: str = Field(default="postgres", alias="DATABASE_PASSWORD")
    database_name: str = Field(default="docvault", alias="DATABASE_NAME")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    session_backend: str = Field(default="redis", alias="SESSION_BACKEND")
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_db: int = Field(default=0, alias="REDIS_DB")

    jwt_secret_key: str = Field(default="changeme", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=420, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="log", alias="LOG_DIR")
    log_file_name: str = Field(default="app.log", alias="LOG_FILE_NAME")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    app_port: int = Field(default=8000, alias="APP_PORT")
    timezone: str = Field(default="Asia/Shanghai", alias="TIMEZONE")

    # 文件存储：上传根目录与其下的历史版本归档目录
    upload_root: str = Field(default="Uploads", alias="UPLOAD_ROOT")
    archive_dir_name: str = Field(default="Archive", alias="ARCHIVE_DIR_NAME")
    # 恢复历史版本时是否把文件归属转移给执行恢复的用户
    restore_transfers_ownership: bool = Field(default=True, alias="RESTORE_TRANSFERS_OWNERSHIP")

    default_admin_username: str = Field(default="admin", alias="DEFAULT_ADMIN_USERNAME")
    default_admin_password: str = Field(default="admin123", alias="DEFAULT_ADMIN_PASSWORD")
    default_admin_email: str = Field(default="admin@example.com", alias="DEFAULT_ADMIN_EMAIL")

    model_config = SettingsConfigDict(extra='ignore')

    @property
    def sql_database_url(self) -> str:
        """返回数据库连接串：优先使用 ``DATABASE_URL``，否则拼接 PostgreSQL 连接串。"""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def redis_url(self) -> str:
        """根据当前配置生成 Redis 连接地址。"""
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    def _resolve_path(self, raw: str) -> Path:
        path = Path(raw)
        if not path.is_absolute():
            path = BASE_DIR / path
        return path

    @property
    def log_directory(self) -> Path:
        """返回日志目录的绝对路径，支持相对路径配置。"""
        return self._resolve_path(self.log_dir)

    @property
    def log_file_path(self) -> Path:
        """组合日志目录与文件名，得到完整的日志文件路径。"""
        return self.log_directory / self.log_file_name

    @property
    def upload_directory(self) -> Path:
        """返回上传根目录的绝对路径。"""
        return self._resolve_path(self.upload_root)

    @property
    def timezone_info(self) -> ZoneInfo:
        """返回当前配置对应的时区信息，无法解析时回退到 UTC。"""
        try:
            return ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError:
            return ZoneInfo("UTC")


@lru_cache
def get_settings() -> Settings:
    """进程内只解析一次环境变量，测试需在首次调用前设置好环境。"""
    return Settings()
