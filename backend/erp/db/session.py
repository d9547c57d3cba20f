from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from erp.core.config import settings

# 创建异步引擎
# SQLite 文件库不复用连接，每个请求独立打开
engine = create_async_engine(
    settings.async_database_uri,
    echo=settings.SQL_DEBUG,
    poolclass=NullPool,
)

# 创建异步会话
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
