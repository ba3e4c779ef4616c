"""
数据库引擎配置和管理
使用SQLAlchemy异步引擎连接数据库（默认 SQLite / aiosqlite）
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pokebridge.datastore.models import Base
from pokebridge.settings import global_settings

# 全局数据库引擎实例
engine = None
AsyncSessionLocal = None


async def init_db(
    database_url: str | None = None, echo: bool | None = None
) -> async_sessionmaker[AsyncSession]:
    """初始化数据库连接和表结构，返回会话工厂"""
    global engine, AsyncSessionLocal

    engine = create_async_engine(
        database_url or global_settings.database_url,
        echo=global_settings.database_echo if echo is None else echo,
    )

    AsyncSessionLocal = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # 创建所有表
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return AsyncSessionLocal


async def ping_db() -> bool:
    """检查数据库是否可用"""
    if engine is None:
        return False
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True


async def close_db() -> None:
    """关闭数据库连接"""
    global engine, AsyncSessionLocal
    if engine:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None
