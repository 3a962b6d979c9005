"""
RabbitMQ Consumer Entry Point
Starts the event consumer that recomputes the dashboard on new surveys
"""
import logging

from dotenv import load_dotenv

load_dotenv()

from app.messaging.consumer import start_consumer

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    start_consumer()
