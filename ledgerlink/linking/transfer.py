"""Transfer links: the same money leaving one account and entering another."""

from typing import Optional

from ..models import LinkType, PossibleLink, Transaction
from .core import amounts_empty


def amounts_are_opposites(left: Transaction, right: Transaction) -> bool:
    return left.amount_cents == -right.amount_cents


def evaluate_if_transfer_link(
    left: Transaction,
    right: Transaction,
) -> Optional[PossibleLink]:
    """
    Propose a transfer between two records.

    The negative record leads, the positive one follows, whatever the
    argument order.
    """
    if (
        left.has_same_uuid(right)
        or amounts_empty(left, right)
        or not amounts_are_opposites(left, right)
    ):
        return None

    if left.amount_cents < 0:
        negative, positive = left, right
    else:
        negative, positive = right, left
    return PossibleLink.from_uuids(negative.uuid, positive.uuid, LinkType.TRANSFER)
