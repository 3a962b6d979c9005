"""RabbitMQ publisher for survey events"""
import os
import json
import logging
from typing import Dict

import pika

logger = logging.getLogger(__name__)


class RabbitMQPublisher:
    """Publishes JSON events to a durable topic exchange"""

    def __init__(self):
        self.host = os.getenv("RABBITMQ_HOST")
        self.port = int(os.getenv("RABBITMQ_PORT", "5672"))
        self.user = os.getenv("RABBITMQ_USER", "guest")
        self.password = os.getenv("RABBITMQ_PASSWORD", "guest")
        self.exchange = os.getenv("RABBITMQ_SURVEY_EXCHANGE", "survey.events")

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def _parameters(self) -> pika.ConnectionParameters:
        credentials = pika.PlainCredentials(self.user, self.password)
        return pika.ConnectionParameters(
            host=self.host,
            port=self.port,
            credentials=credentials,
            heartbeat=600,
            blocked_connection_timeout=300
        )

    def publish(self, routing_key: str, message: Dict):
        """Publish one persistent message."""
        connection = pika.BlockingConnection(self._parameters())
        try:
            channel = connection.channel()
            channel.exchange_declare(
                exchange=self.exchange,
                exchange_type='topic',
                durable=True
            )
            channel.basic_publish(
                exchange=self.exchange,
                routing_key=routing_key,
                body=json.dumps(message, default=str),
                properties=pika.BasicProperties(
                    content_type="application/json",
                    delivery_mode=2,
                ),
            )
            logger.info(f"Published {routing_key} to {self.exchange}")
        finally:
            connection.close()
