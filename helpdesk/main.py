import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from helpdesk.config import CORS_ORIGINS, LOG_LEVEL, SEED_DEMO
from helpdesk.database import Base, engine
from helpdesk.seed import seed_data
from helpdesk.routers import (
    auth, tickets, reports, users, units, sectors, assets, remote_access, problems, chat,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="HelpDesk Pro API", version="2.4.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Base.metadata.create_all(bind=engine)
if SEED_DEMO:
    seed_data()

app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(tickets.router, prefix="/tickets", tags=["Tickets"])
app.include_router(reports.router, prefix="/reports", tags=["Reports"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(units.router, prefix="/units", tags=["Units"])
app.include_router(sectors.router, prefix="/sectors", tags=["Sectors"])
app.include_router(assets.router, prefix="/assets", tags=["Assets"])
app.include_router(remote_access.router, prefix="/remote-access", tags=["Remote access"])
app.include_router(problems.router, prefix="/problems", tags=["Problems"])
app.include_router(chat.router, prefix="/chat", tags=["Chat"])


@app.get("/healthz")
def health():
    return {"status": "ok"}
