# ORM 基类 + 约束命名规范

from __future__ import annotations
import uuid

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import MetaData

# Alembic 迁移时约束/索引名字稳定可预期
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def new_id() -> str:
    """String UUID primary keys, same shape the booking front-end already stores."""
    return str(uuid.uuid4())


# Postgres 用 JSONB，其它方言（测试用 sqlite）退回通用 JSON
JSONType = JSON().with_variant(JSONB(), "postgresql")
