# Shared declarative base for every table of the entity store
from datetime import datetime

from sqlalchemy.orm import DeclarativeBase as _DeclarativeBase
from sqlalchemy.orm import Mapped, mapped_column

from common.db.db_utils import DateTimeUTC, create_metadata
from common.ids import new_id
from common.utils.utils import get_now


class Base(_DeclarativeBase):
    __abstract__ = True

    metadata = create_metadata()

    created_at: Mapped[datetime] = mapped_column(DateTimeUTC(), default=get_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTimeUTC(), default=get_now, onupdate=get_now, nullable=False)


__all__ = ["Base", "new_id"]
