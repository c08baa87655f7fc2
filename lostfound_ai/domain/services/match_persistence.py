"""Writes accepted matches as two directional rows and notifies both owners."""

import logging
from typing import Dict, List

from ..models.item import Item
from ..models.match import ScoredMatch
from ..models.notification import Notification
from ..ports.store import MatchStore, NotificationSink

logger = logging.getLogger(__name__)

MATCH_NOTIFICATION_TITLE = "Potential Match Found!"


def build_match_notification(recipient_item: Item, other_item: Item, confidence: int) -> Notification:
    """Notification for the owner of ``recipient_item``."""
    return Notification(
        user_id=recipient_item.user_id,
        type="match",
        title=MATCH_NOTIFICATION_TITLE,
        message=(
            f'Your {recipient_item.status.value} item "{recipient_item.title}" may match a '
            f'{other_item.status.value} item: "{other_item.title}" ({confidence}% match)'
        ),
        link=f"/items/{recipient_item.id}",
        metadata={
            "item_id": recipient_item.id,
            "matched_item_id": other_item.id,
            "confidence_score": confidence,
        },
    )


class MatchPersistence:
    """Upserts both directions of every accepted match.

    The two upserts are independent writes. A failure between them leaves
    only A->B visible until the next run repairs B->A.
    Notifications are sent on every run, including re-runs.
    """

    def __init__(self, matches: MatchStore, notifications: NotificationSink, min_confidence: int = 40):
        self.matches = matches
        self.notifications = notifications
        self.min_confidence = min_confidence

    async def persist(
        self,
        source: Item,
        scored: List[ScoredMatch],
        candidates: Dict[str, Item],
    ) -> int:
        """Persist matches for ``source``.

        Args:
            source: The item the matching run was for
            scored: Accepted matches from the scorer
            candidates: Candidate items by id

        Returns:
            Number of notifications sent

        Raises:
            PersistenceError: If any write fails
        """
        sent = 0
        for match in scored:
            if match.confidence < self.min_confidence:
                continue
            matched = candidates.get(match.candidate_id)
            if matched is None:
                logger.warning(f"⚠️ Match for unknown candidate {match.candidate_id} ignored")
                continue

            await self.matches.upsert_match(source.id, matched.id, match.confidence, match.reasoning)
            await self.matches.upsert_match(matched.id, source.id, match.confidence, match.reasoning)

            await self.notifications.insert_notification(
                build_match_notification(matched, source, match.confidence)
            )
            await self.notifications.insert_notification(
                build_match_notification(source, matched, match.confidence)
            )
            sent += 2
            logger.info(f"🔗 Linked {source.id} <-> {matched.id} at {match.confidence}%")

        return sent
