from typing import Optional
from sqlmodel import Field, SQLModel


class Tag(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    name_key: str = Field(index=True, unique=True)


class Group(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    name_key: str = Field(index=True, unique=True)


class Tagged(SQLModel, table=True):
    """Edge tag -> host."""
    tag_id: int = Field(foreign_key="tag.id", primary_key=True)
    host_id: int = Field(foreign_key="host.id", primary_key=True, index=True)


class Groupped(SQLModel, table=True):
    """Edge group -> host."""
    group_id: int = Field(foreign_key="group.id", primary_key=True)
    host_id: int = Field(foreign_key="host.id", primary_key=True, index=True)
