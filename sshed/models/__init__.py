from .host import Host
from .membership import Tag, Group, Tagged, Groupped
from enum import Enum


class EntityKind(str, Enum):
    TAG = "tag"
    GROUP = "group"

    @property
    def model(self):
        return Tag if self is EntityKind.TAG else Group

    @property
    def relation(self):
        return Tagged if self is EntityKind.TAG else Groupped

    @property
    def member_column(self):
        return Tagged.tag_id if self is EntityKind.TAG else Groupped.group_id


__all__ = ["Host", "Tag", "Group", "Tagged", "Groupped", "EntityKind"]
