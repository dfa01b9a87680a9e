import logging
import uuid
from typing import Iterable, List

from firebase_admin import messaging

from models import NOTIFICATIONS

logger = logging.getLogger(__name__)


class UnlockNotifier:
    """
    Hands unlock events to the presentation layer as an ordered per-user queue.
    Optionally mirrors each event to the user's device as an FCM data message.
    """

    def __init__(self, store, fcm_enabled: bool = False):
        self.store = store
        self.fcm_enabled = fcm_enabled

    def _records_for(self, user_id: str) -> List[dict]:
        records = self.store.query(NOTIFICATIONS, lambda r: r.get('userId') == user_id)
        return sorted(records, key=lambda r: r.get('sequence', 0))

    def _send_push(self, fcm_token: str, record: dict):
        try:
            # FCM data payloads must be strings
            payload = {k: str(v) for k, v in record.items() if v is not None}
            payload['title'] = f"New {record['kind']} unlocked!"
            payload['body'] = record['title']
            message = messaging.Message(token=fcm_token, data=payload,
                                        android=messaging.AndroidConfig(priority="high"))
            response = messaging.send(message)
            logger.info(f"Sent unlock push {record['id']} to user {record['userId']}. Response: {response}")
        except Exception as e:
            logger.error(f"Failed to send unlock push to user {record['userId']}: {e}", exc_info=True)

    def publish(self, user, events: Iterable) -> List[dict]:
        """Append events for the user in the order given; returns the stored records."""
        events = list(events)
        if not events:
            return []

        existing = self._records_for(user.id)
        next_sequence = (existing[-1].get('sequence', 0) if existing else 0) + 1

        published = []
        for offset, event in enumerate(events):
            record = {
                'id': str(uuid.uuid4()),
                'userId': user.id,
                'sequence': next_sequence + offset,
                'kind': event.kind,
                'unlockId': event.id,
                'title': event.title,
                'icon': event.icon,
                'color': event.color,
                'read': False,
            }
            published.append(self.store.put(NOTIFICATIONS, record))

            if self.fcm_enabled and user.fcmToken:
                self._send_push(user.fcmToken, record)

        logger.info(f"Queued {len(published)} unlock notifications for user {user.id}")
        return published

    def pending(self, user_id: str) -> List[dict]:
        return [r for r in self._records_for(user_id) if not r.get('read')]

    def acknowledge(self, user_id: str, notification_ids: Iterable[str]) -> int:
        """Marks the given notifications read; returns how many changed."""
        wanted = set(notification_ids)
        acknowledged = 0
        for record in self._records_for(user_id):
            if record['id'] in wanted and not record.get('read'):
                record['read'] = True
                self.store.put(NOTIFICATIONS, record)
                acknowledged += 1
        return acknowledged
