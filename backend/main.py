# backend/main.py
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routes import agent_api, appointments_api, bookings_api, session_api, slots_api, symptoms_api
from services.config import load_settings

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

settings = load_settings()

app = FastAPI(title="Physiotattva Voice Consultation Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings["cors_origins"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(session_api.router)
app.include_router(symptoms_api.router)
app.include_router(appointments_api.router)
app.include_router(slots_api.router)
app.include_router(bookings_api.router)
app.include_router(agent_api.router)


@app.get("/")
def root():
    return {"status": "ok", "message": "Physiotattva consultation backend is running"}
