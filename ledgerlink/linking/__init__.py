"""Linking module for transfer and duplicate detection between records."""

from .core import (
    LinkIdentity,
    LinkVariant,
    amounts_empty,
    calculate_probabilities,
    days_between,
    is_suppressed,
    link_probability,
    merge_to_link_identities,
    records_not_in_transfers,
)
from .duplicate import evaluate_if_duplicate_link
from .engine import LinkEngine, LinkPromotion
from .transfer import evaluate_if_transfer_link

__all__ = [
    "LinkIdentity",
    "LinkVariant",
    "amounts_empty",
    "calculate_probabilities",
    "days_between",
    "is_suppressed",
    "link_probability",
    "merge_to_link_identities",
    "records_not_in_transfers",
    "evaluate_if_duplicate_link",
    "evaluate_if_transfer_link",
    "LinkEngine",
    "LinkPromotion",
]
