# 导出入口：脚本 / 测试里建表删表

from .session import engine, SessionLocal, get_db, session_scope, dispose_engine
from app.db.model import *  # 确保把所有模型加载进 Base.metadata
from .base import Base


"""
    空库快速建表（本地 sqlite、测试）：
        python -c "from app.db import create_all; create_all()"
    Postgres 上统一走 `alembic upgrade head`
"""
def create_all() -> None:
    Base.metadata.create_all(bind=engine)


def drop_all() -> None:
    """只给测试用：按外键逆序删掉所有表"""
    Base.metadata.drop_all(bind=engine)
