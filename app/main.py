from fastapi import FastAPI
from dotenv import load_dotenv
load_dotenv()

from app.analytics.router import router as analytics_router
from app.analytics.snapshot import DashboardSnapshot
from app.messaging.notifier import ChangeNotifier
from app.messaging.rabbitmq import RabbitMQPublisher
from app.surveys.router import router as surveys_router

app = FastAPI(title="Patient Survey Service")

# Inserts made through this process invalidate its dashboard snapshot
app.state.notifier = ChangeNotifier(RabbitMQPublisher())
app.state.snapshot = DashboardSnapshot()
app.state.notifier.subscribe(app.state.snapshot.invalidate)

app.include_router(surveys_router)
app.include_router(analytics_router)

@app.get("/health")
def health():
    return {"status": "ok"}
