"""
Shared linking rules.

Identity and suppression of proposals, the transfer pool and the
logistic time-distance probability model.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import structlog

from ..models import Link, LinkType, PossibleLink, Transaction

logger = structlog.get_logger()

# math.exp overflows a float just above 709
_MAX_EXPONENT = 700.0


class LinkVariant(str, Enum):
    """Whether an identity comes from a confirmed link or a proposal."""
    LINK = "link"
    POSSIBLE_LINK = "possible_link"


@dataclass(frozen=True)
class LinkIdentity:
    """The (leading, following, type) triple of a link or proposal."""
    leading: str
    following: str
    link_type: LinkType
    variant: LinkVariant

    @classmethod
    def of_link(cls, link: Link) -> "LinkIdentity":
        return cls(link.leading, link.following, link.link_type, LinkVariant.LINK)

    @classmethod
    def of_possible_link(cls, link: PossibleLink) -> "LinkIdentity":
        return cls(
            link.leading, link.following, link.link_type, LinkVariant.POSSIBLE_LINK
        )

    @property
    def is_confirmed(self) -> bool:
        return self.variant == LinkVariant.LINK

    def touches(self, record_uuid: str) -> bool:
        return record_uuid in (self.leading, self.following)


def amounts_empty(existing: Transaction, new: Transaction) -> bool:
    """True if either amount is zero, such records are never linked."""
    if existing.amount_cents == 0:
        logger.warning("Existing record has a zero amount", record=existing.uuid)
        return True
    if new.amount_cents == 0:
        logger.warning("New record has a zero amount", record=new.uuid)
        return True
    return False


def merge_to_link_identities(
    links: Iterable[Link],
    possible_links: Iterable[PossibleLink],
) -> Set[LinkIdentity]:
    identities = {LinkIdentity.of_link(link) for link in links if not link.deleted}
    identities.update(LinkIdentity.of_possible_link(pl) for pl in possible_links)
    return identities


def _blocks(identity: LinkIdentity, new_link: PossibleLink) -> bool:
    if identity.link_type != new_link.link_type:
        return False

    if identity.leading == new_link.leading and identity.following == new_link.following:
        return True

    if not identity.is_confirmed:
        return False

    # A record takes part in at most one confirmed transfer
    if new_link.link_type == LinkType.TRANSFER:
        return identity.touches(new_link.leading) or identity.touches(new_link.following)

    # A confirmed as duplicate of B rules out B as duplicate of A
    return (
        identity.leading == new_link.following
        and identity.following == new_link.leading
    )


def is_suppressed(identities: Iterable[LinkIdentity], new_link: PossibleLink) -> bool:
    """True if an existing link or proposal makes `new_link` redundant."""
    return any(_blocks(identity, new_link) for identity in identities)


def records_not_in_transfers(
    records: Iterable[Transaction],
    links: Iterable[Link],
) -> List[Transaction]:
    """Records that are not part of any confirmed transfer."""
    in_transfers: Set[str] = set()
    for link in links:
        if link.link_type == LinkType.TRANSFER and not link.deleted:
            in_transfers.update((link.leading, link.following))
    return [record for record in records if record.uuid not in in_transfers]


def days_between(a: datetime, b: datetime) -> int:
    """Whole days between two instants, fractions are dropped."""
    return abs(a - b).days


def check_steepness(falloff_steepness: float) -> None:
    if not 0.0 <= falloff_steepness <= 1.0:
        raise ValueError(
            f"falloff_steepness must be within [0, 1], got {falloff_steepness}"
        )


def link_probability(
    time_distance: float,
    falloff_steepness: float,
    offset_days: float,
) -> float:
    """
    Logistic confidence for two records `time_distance` days apart.

    probability = 1 / (1 + e^((1 - steepness) * t - offset_days))
    """
    check_steepness(falloff_steepness)
    exponent = (1.0 - falloff_steepness) * time_distance - offset_days
    if exponent > _MAX_EXPONENT:
        return 0.0
    return 1.0 / (1.0 + math.exp(exponent))


def calculate_probabilities(
    possible_links: Sequence[PossibleLink],
    records: Iterable[Transaction],
    falloff_steepness: float,
    offset_days: float,
    floor: float = 0.0,
) -> List[Tuple[str, float]]:
    """
    Recompute the probability of every proposal.

    A proposal referencing a record that is no longer present gets
    `floor`, the lowest probability, and a logged warning.

    Returns:
        (possible link uuid, probability) in the order of `possible_links`
    """
    check_steepness(falloff_steepness)

    linked = set()
    for link in possible_links:
        linked.update((link.leading, link.following))
    by_uuid: Dict[str, Transaction] = {
        record.uuid: record for record in records if record.uuid in linked
    }

    probabilities = []
    for link in possible_links:
        leading: Optional[Transaction] = by_uuid.get(link.leading)
        following: Optional[Transaction] = by_uuid.get(link.following)

        if leading is None or following is None:
            logger.warning(
                "Possible link references a missing record",
                possible_link=link.uuid,
                leading=link.leading,
                following=link.following,
            )
            probabilities.append((link.uuid, floor))
            continue

        t = days_between(leading.occurred_at, following.occurred_at)
        probabilities.append(
            (link.uuid, link_probability(t, falloff_steepness, offset_days))
        )

    return probabilities


def competing_possible_links(
    confirmed: PossibleLink,
    possible_links: Iterable[PossibleLink],
) -> List[PossibleLink]:
    """Active proposals of the same type sharing an endpoint with `confirmed`."""
    return [
        pl for pl in possible_links
        if pl.uuid != confirmed.uuid
        and pl.is_active
        and pl.link_type == confirmed.link_type
        and pl.overlaps(confirmed)
    ]
