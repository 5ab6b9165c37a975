"""
Link Engine - proposes and confirms links between records.

New records are compared against the pool of existing records. Every
pair may yield a transfer and a duplicate proposal; proposals already
covered by confirmed links or earlier proposals are suppressed.
"""

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Set, Tuple

import structlog

from ..config import get_settings
from ..models import (
    AuditAction,
    Link,
    PossibleLink,
    PossibleLinkState,
    Transaction,
)
from ..utils.audit_logger import AuditLogger
from .core import (
    calculate_probabilities,
    check_steepness,
    competing_possible_links,
    is_suppressed,
    merge_to_link_identities,
    records_not_in_transfers,
)
from .duplicate import evaluate_if_duplicate_link
from .transfer import evaluate_if_transfer_link

logger = structlog.get_logger()


@dataclass
class LinkPromotion:
    """Changes caused by confirming a possible link."""
    link: Link
    converted: PossibleLink
    retracted: List[PossibleLink]


class LinkEngine:
    """
    Proposes PossibleLinks and turns confirmed ones into Links.

    The engine keeps no state of its own: every call receives snapshots
    of the records, links and proposals it needs and returns new values.
    """

    def __init__(
        self,
        falloff_steepness: Optional[float] = None,
        offset_days: Optional[float] = None,
        probability_floor: Optional[float] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.settings = get_settings()
        self.falloff_steepness = (
            self.settings.falloff_steepness
            if falloff_steepness is None else falloff_steepness
        )
        self.offset_days = (
            self.settings.offset_days if offset_days is None else offset_days
        )
        self.probability_floor = (
            self.settings.probability_floor
            if probability_floor is None else probability_floor
        )
        check_steepness(self.falloff_steepness)
        self.audit = audit

    def _audit(self, action: AuditAction, record_ids: List[str], message: str, **details) -> None:
        if self.audit is not None:
            self.audit.record(action, message, record_ids=record_ids, **details)

    # ------------------------------------------------------------------
    # Single pairs
    # ------------------------------------------------------------------

    def propose_transfer(self, a: Transaction, b: Transaction) -> Optional[PossibleLink]:
        return evaluate_if_transfer_link(a, b)

    def propose_duplicate(self, a: Transaction, b: Transaction) -> Optional[PossibleLink]:
        return evaluate_if_duplicate_link(a, b)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def find_all_possible_links(
        self,
        outer_records: Iterable[Transaction],
        inner_records: Iterable[Transaction],
        links: Sequence[Link],
        possible_links: Sequence[PossibleLink],
    ) -> List[PossibleLink]:
        """
        Propose links for every pair of outer and inner records.

        Args:
            outer_records: Usually the new records
            inner_records: The pool to compare against
            links: All confirmed links
            possible_links: All existing proposals

        Returns:
            New proposals that are not suppressed, each identity at most once
        """
        outer = list(outer_records)
        inner = list(inner_records)
        identities = merge_to_link_identities(links, possible_links)

        proposals: List[PossibleLink] = []
        seen: Set[Tuple] = set()
        suppressed = 0

        for left in outer:
            for right in inner:
                for candidate in (
                    evaluate_if_transfer_link(left, right),
                    evaluate_if_duplicate_link(left, right),
                ):
                    if candidate is None or candidate.identity() in seen:
                        continue
                    if is_suppressed(identities, candidate):
                        suppressed += 1
                        continue
                    seen.add(candidate.identity())
                    proposals.append(candidate)

        logger.info(
            "Searched possible links",
            outer=len(outer),
            inner=len(inner),
            found=len(proposals),
            suppressed=suppressed,
        )
        for proposal in proposals:
            self._audit(
                AuditAction.LINK_PROPOSED,
                [proposal.leading, proposal.following],
                f"Proposed {proposal.link_type.value} link",
                possible_link=proposal.uuid,
            )
        if suppressed:
            self._audit(
                AuditAction.LINK_SUPPRESSED,
                [],
                "Suppressed redundant proposals",
                count=suppressed,
            )
        return proposals

    def find_links_from_new_records(
        self,
        new_records: Iterable[Transaction],
        records: Iterable[Transaction],
        links: Sequence[Link],
        possible_links: Sequence[PossibleLink],
    ) -> List[PossibleLink]:
        """Link new records against existing ones not already in a transfer."""
        pool = records_not_in_transfers(records, links)
        return self.find_all_possible_links(new_records, pool, links, possible_links)

    def find_links_in_existing_records(
        self,
        records: Iterable[Transaction],
        links: Sequence[Link],
        possible_links: Sequence[PossibleLink],
    ) -> List[PossibleLink]:
        pool = records_not_in_transfers(records, links)
        return self.find_all_possible_links(pool, pool, links, possible_links)

    # ------------------------------------------------------------------
    # Probabilities
    # ------------------------------------------------------------------

    def recompute_probabilities(
        self,
        possible_links: Sequence[PossibleLink],
        records: Iterable[Transaction],
        falloff_steepness: Optional[float] = None,
        offset_days: Optional[float] = None,
    ) -> List[Tuple[str, float]]:
        steepness = self.falloff_steepness if falloff_steepness is None else falloff_steepness
        offset = self.offset_days if offset_days is None else offset_days

        records = list(records)
        probabilities = calculate_probabilities(
            possible_links,
            records,
            steepness,
            offset,
            floor=self.probability_floor,
        )
        logger.debug(
            "Recomputed link probabilities",
            links=len(probabilities),
            falloff_steepness=steepness,
            offset_days=offset,
        )

        present = {record.uuid for record in records}
        for pl in possible_links:
            if pl.leading not in present or pl.following not in present:
                self._audit(
                    AuditAction.PROBABILITY_DEGRADED,
                    [pl.leading, pl.following],
                    "Possible link references a missing record",
                    possible_link=pl.uuid,
                )
        return probabilities

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def confirm(
        self,
        possible_link: PossibleLink,
        possible_links: Sequence[PossibleLink],
    ) -> LinkPromotion:
        """
        Promote a proposal to a Link.

        The source proposal is marked converted and every other active
        proposal of the same type touching either record is retracted.
        """
        link = Link.from_possible_link(possible_link)
        converted = replace(possible_link, state=PossibleLinkState.CONVERTED)
        retracted = [
            replace(pl, state=PossibleLinkState.DELETED)
            for pl in competing_possible_links(possible_link, possible_links)
        ]

        logger.info(
            "Link confirmed",
            link=link.uuid,
            link_type=link.link_type.value,
            retracted=len(retracted),
        )
        self._audit(
            AuditAction.LINK_CONFIRMED,
            [link.leading, link.following],
            f"Confirmed {link.link_type.value} link",
            link=link.uuid,
            retracted=[pl.uuid for pl in retracted],
        )
        return LinkPromotion(link=link, converted=converted, retracted=retracted)

    def dismiss(self, possible_link: PossibleLink) -> PossibleLink:
        self._audit(
            AuditAction.LINK_DISMISSED,
            [possible_link.leading, possible_link.following],
            f"Dismissed {possible_link.link_type.value} link",
            possible_link=possible_link.uuid,
        )
        return replace(possible_link, state=PossibleLinkState.DELETED)

