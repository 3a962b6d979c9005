"""Insert notifications for survey responses"""
import logging
from typing import Callable, List, Optional

from pika.exceptions import AMQPError

from app.messaging.rabbitmq import RabbitMQPublisher

logger = logging.getLogger(__name__)

SURVEY_CREATED = "survey.created"

InsertCallback = Callable[[object], None]


class ChangeNotifier:
    """
    Fans out "a response was inserted" to in-process subscribers and,
    when configured, to other processes over RabbitMQ.
    """

    def __init__(self, publisher: Optional[RabbitMQPublisher] = None):
        self.publisher = publisher
        self._subscribers: List[InsertCallback] = []

    def subscribe(self, callback: InsertCallback) -> Callable[[], None]:
        """Register a callback; returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def notify(self, survey) -> None:
        """Deliver an insert to every subscriber, then publish it."""
        for callback in list(self._subscribers):
            try:
                callback(survey)
            except Exception:
                logger.exception(f"Subscriber {callback!r} failed for survey {survey.id}")

        if self.publisher is not None and self.publisher.enabled:
            message = {
                "event": SURVEY_CREATED,
                "data": {
                    "id": str(survey.id),
                    "created_at": survey.created_at.isoformat() if survey.created_at else None,
                    "nps_score": survey.nps_score,
                },
            }
            try:
                self.publisher.publish(SURVEY_CREATED, message)
            except AMQPError as e:
                logger.error(f"Could not publish {SURVEY_CREATED} for survey {survey.id}: {e}")
