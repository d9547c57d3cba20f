from typing import List, Union
import logging

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    PROJECT_NAME: str = "ERP Admin API"
    API_V1_STR: str = "/admin/api/v1"
    # 重要：生产环境必须通过 .env 文件或环境变量设置此值
    SECRET_KEY: str = Field(
        default="dev-only-secret-key-please-change-in-production",
        description="JWT密钥，生产环境必须修改"
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7天

    # CORS配置
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # 数据库配置
    SQLITE_DATABASE_URI: str = "sqlite:///./erp.db"
    SQL_DEBUG: bool = False

    # 日志
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # 分页
    DEFAULT_PER_PAGE: int = 15
    MAX_PER_PAGE: int = 100

    # 初始数据
    FIRST_SUPERUSER_NAME: str = "Administrator"
    FIRST_SUPERUSER_EMAIL: str = "admin@example.com"
    FIRST_SUPERUSER_PASSWORD: str = "admin123456"
    DEFAULT_COMPANY_NAME: str = "My Company"
    DEFAULT_CURRENCY: str = "USD"

    # 库存调度（每天自动检查待处理作业的可用性）
    STOCK_SCHEDULER_ENABLED: bool = True
    STOCK_SCHEDULER_HOUR: int = 2
    STOCK_SCHEDULER_MINUTE: int = 0

    class Config:
        case_sensitive = True
        env_file = ".env"

    @property
    def async_database_uri(self) -> str:
        return self.SQLITE_DATABASE_URI.replace("sqlite:///", "sqlite+aiosqlite:///")


settings = Settings()
logger.info(f"加载配置: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
