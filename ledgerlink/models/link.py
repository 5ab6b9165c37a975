"""Link models between records."""

from dataclasses import dataclass, field
from typing import Tuple

from .enums import LinkType, PossibleLinkState
from .transaction import new_uuid


@dataclass(frozen=True)
class PossibleLink:
    """
    A proposal that two records describe the same economic event.

    For transfers `leading` is the negative side and `following` the
    positive side.
    """
    leading: str
    following: str
    link_type: LinkType = LinkType.TRANSFER
    probability: float = 1.0
    state: PossibleLinkState = PossibleLinkState.ACTIVE
    uuid: str = field(default_factory=new_uuid)

    @classmethod
    def from_uuids(
        cls,
        leading: str,
        following: str,
        link_type: LinkType,
    ) -> "PossibleLink":
        return cls(leading=leading, following=following, link_type=link_type)

    @property
    def is_active(self) -> bool:
        return self.state == PossibleLinkState.ACTIVE

    def contains(self, record_uuid: str) -> bool:
        return record_uuid in (self.leading, self.following)

    def overlaps(self, other: "PossibleLink") -> bool:
        return bool({self.leading, self.following} & {other.leading, other.following})

    def identity(self) -> Tuple[str, str, LinkType]:
        return (self.leading, self.following, self.link_type)


@dataclass(frozen=True)
class Link:
    """A user confirmed relationship between two records."""
    leading: str
    following: str
    link_type: LinkType = LinkType.TRANSFER
    deleted: bool = False
    uuid: str = field(default_factory=new_uuid)

    @classmethod
    def from_possible_link(cls, possible_link: PossibleLink) -> "Link":
        return cls(
            uuid=possible_link.uuid,
            leading=possible_link.leading,
            following=possible_link.following,
            link_type=possible_link.link_type,
        )

    def contains(self, record_uuid: str) -> bool:
        return record_uuid in (self.leading, self.following)

    def identity(self) -> Tuple[str, str, LinkType]:
        return (self.leading, self.following, self.link_type)
