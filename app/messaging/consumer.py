import os
import json
import asyncio
import pika
import logging
from typing import Dict

from app.analytics.service import Dashboard, build_dashboard
from app.analytics.snapshot import DashboardSnapshot
from app.db.postgres import async_session
from app.messaging.notifier import SURVEY_CREATED, ChangeNotifier
from app.surveys.exceptions import DataFetchError
from app.surveys.store import SqlResponseStore

logger = logging.getLogger(__name__)

QUEUE_NAME = 'survey_dashboard_events'


class SurveyEventConsumer:
    """Recomputes the dashboard whenever another process stores a survey"""

    def __init__(self):
        self.host = os.getenv("RABBITMQ_HOST")
        self.port = int(os.getenv("RABBITMQ_PORT", "5672"))
        self.user = os.getenv("RABBITMQ_USER", "guest")
        self.password = os.getenv("RABBITMQ_PASSWORD", "guest")
        self.survey_exchange = os.getenv("RABBITMQ_SURVEY_EXCHANGE", "survey.events")
        self.snapshot = DashboardSnapshot()
        self.connection = None
        self.channel = None

    def connect(self):
        credentials = pika.PlainCredentials(self.user, self.password)
        parameters = pika.ConnectionParameters(
            host=self.host,
            port=self.port,
            credentials=credentials,
            heartbeat=600,
            blocked_connection_timeout=300
        )

        self.connection = pika.BlockingConnection(parameters)
        self.channel = self.connection.channel()

        self.channel.exchange_declare(
            exchange=self.survey_exchange,
            exchange_type='topic',
            durable=True
        )

        self.channel.queue_declare(queue=QUEUE_NAME, durable=True)
        self.channel.queue_bind(
            exchange=self.survey_exchange,
            queue=QUEUE_NAME,
            routing_key=SURVEY_CREATED
        )

        return QUEUE_NAME

    async def recompute_dashboard(self) -> Dashboard:
        """Refetch every response and rebuild the dashboard figures."""
        self.snapshot.invalidate()
        async with async_session() as session:
            store = SqlResponseStore(session, ChangeNotifier())
            responses = await self.snapshot.current(store)
        if self.snapshot.last_error is not None:
            raise self.snapshot.last_error
        return build_dashboard(responses)

    def process_survey_created(self, event_data: Dict):
        """Recompute the dashboard after a new survey response."""
        survey_id = event_data.get('id')
        dashboard = asyncio.run(self.recompute_dashboard())

        satisfaction = f"{dashboard.satisfaction:.2f}" if dashboard.satisfaction is not None else "n/a"
        logger.info(
            f"Survey {survey_id} stored - {dashboard.total} responses, "
            f"NPS {dashboard.nps.nps}, satisfaction {satisfaction}, "
            f"{dashboard.with_comments} with comments"
        )

    def callback(self, ch, method, properties, body):
        """Process incoming messages from the queue."""
        try:
            message = json.loads(body)
            event_type = message.get('event') or method.routing_key

            if event_type == SURVEY_CREATED:
                self.process_survey_created(message.get('data', {}))
            else:
                logger.warning(f"Unknown event type: {event_type}")

            ch.basic_ack(delivery_tag=method.delivery_tag)

        except DataFetchError as e:
            logger.error(f"Dashboard recompute failed, requeueing message: {e}")
            ch.basic_nack(delivery_tag=method.delivery_tag, requeue=True)

        except Exception as e:
            # Redelivery cannot fix a malformed message
            logger.error(f"Error processing message, dropping it: {e}")
            ch.basic_nack(delivery_tag=method.delivery_tag, requeue=False)

    def start_consuming(self):
        """Start consuming messages from RabbitMQ."""
        try:
            queue_name = self.connect()

            logger.info("="*60)
            logger.info("Patient Survey Service - Survey Event Consumer")
            logger.info(f"Connected to RabbitMQ: {self.host}:{self.port}")
            logger.info(f"Listening to queue: {queue_name}")
            logger.info(f"Routing keys: {SURVEY_CREATED}")
            logger.info("="*60)

            self.channel.basic_qos(prefetch_count=1)
            self.channel.basic_consume(
                queue=queue_name,
                on_message_callback=self.callback
            )

            self.channel.start_consuming()

        except KeyboardInterrupt:
            logger.info("Stopping consumer...")
            self.stop()
        except Exception as e:
            logger.error(f"Consumer error: {e}")
            self.stop()
            raise

    def stop(self):
        """Stop consuming and close connections."""
        if self.channel and not self.channel.is_closed:
            self.channel.stop_consuming()
            self.channel.close()
        if self.connection and not self.connection.is_closed:
            self.connection.close()
        logger.info("Consumer stopped")


def start_consumer():
    """Entry point for starting the survey event consumer."""
    consumer = SurveyEventConsumer()
    consumer.start_consuming()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    start_consumer()
