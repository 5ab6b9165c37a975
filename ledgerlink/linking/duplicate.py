"""Duplicate links: the same record imported twice."""

from typing import Optional

from ..models import LinkType, PossibleLink, Transaction
from .core import amounts_empty


def evaluate_if_duplicate_link(
    left: Transaction,
    right: Transaction,
) -> Optional[PossibleLink]:
    # `left` is proposed as the duplicate of `right`
    if (
        left.has_same_uuid(right)
        or amounts_empty(left, right)
        or left.amount_cents != right.amount_cents
    ):
        return None
    return PossibleLink.from_uuids(left.uuid, right.uuid, LinkType.DUPLICATE_OF)
