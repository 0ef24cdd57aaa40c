"""Duplicate detection and submission-count merging for new claims.

Duplicates are never discarded: every resubmission is kept as its own claim
and counted, because repeated submissions are the trending signal.
"""

import logging
from typing import List, Optional

from hakikisha.domain.similarity import similarity, similarity_hash
from hakikisha.models.claim import ClaimModel
from hakikisha.repositories.claim_repo import ClaimRepository

logger = logging.getLogger(__name__)


class SimilarityDetector:
    """Find claims similar to a new submission and merge their counts.

    A claim group is the set of claims sharing one ``similarity_hash``.
    Merging rewrites every member's hash to the group's canonical hash
    (that of its oldest member), so later lookups and trending updates
    see the whole group with a single indexed query.
    """

    def __init__(
        self,
        claim_repo: ClaimRepository,
        threshold: float = 0.8,
        hash_length: int = 64,
        scan_limit: int = 500,
    ):
        self.claims = claim_repo
        self.threshold = threshold
        self.hash_length = hash_length
        self.scan_limit = scan_limit

    def compute_hash(self, title: str, description: str) -> str:
        return similarity_hash(title, description, length=self.hash_length)

    def find_matches(
        self,
        title: str,
        description: str,
        *,
        exclude_id: Optional[int] = None,
    ) -> List[ClaimModel]:
        """Existing non-rejected claims at or above the similarity threshold.

        Exact hash matches are looked up first (indexed, unbounded); the
        fuzzy comparison then covers the most recent ``scan_limit`` claims.
        Every candidate is confirmed with the similarity function.
        """
        text = f"{title} {description}"
        seen: dict[int, ClaimModel] = {}

        by_hash = self.claims.find_by_hash(self.compute_hash(title, description), exclude_id=exclude_id)
        for c in by_hash + self.claims.get_similarity_candidates(exclude_id=exclude_id, limit=self.scan_limit):
            if c.id in seen:
                continue
            if similarity(text, f"{c.title} {c.description}") >= self.threshold:
                seen[c.id] = c

        matches = sorted(seen.values(), key=lambda c: c.id)
        if matches:
            logger.debug("Found %d similar claims: %s", len(matches), [c.id for c in matches])
        return matches

    def merge(self, new_claim: ClaimModel, matches: List[ClaimModel]) -> List[ClaimModel]:
        """Fold ``new_claim`` into the group(s) of ``matches``.

        Returns the other members of the merged group. Every member,
        ``new_claim`` included, ends with ``submission_count`` equal to the
        group size. Changes are flushed, not committed.
        """
        if not matches:
            new_claim.submission_count = 1
            return []

        members: dict[int, ClaimModel] = {c.id: c for c in matches}
        for c in self.claims.get_group(c.similarity_hash for c in matches):
            members.setdefault(c.id, c)
        members.pop(new_claim.id, None)

        group = sorted(members.values(), key=lambda c: c.id)
        canonical = group[0].similarity_hash or new_claim.similarity_hash
        size = len(group) + 1

        for c in group:
            c.similarity_hash = canonical
            c.submission_count = size
        new_claim.similarity_hash = canonical
        new_claim.submission_count = size
        self.claims.update(new_claim)

        logger.info("Claim %d merged into group of %d (hash=%s)", new_claim.id, size, canonical)
        return group
