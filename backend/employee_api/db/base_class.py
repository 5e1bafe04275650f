from typing import Any

from sqlalchemy import MetaData
from sqlalchemy.orm import as_declarative

# Index and constraint names carry the column, which lets store errors name the clashing field
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}


@as_declarative(metadata=MetaData(naming_convention=NAMING_CONVENTION))
class Base:
    id: Any
    __tablename__: str
