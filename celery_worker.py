#!/usr/bin/env python3
"""
Celery worker for Wyshkit background jobs: emails, SMS/WhatsApp and
real-time notification fan-out.
"""
from core.celery import celery_app
from core.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging()
    celery_app.start([
        "worker",
        "--loglevel=info",
        "--concurrency=4",
        "--without-gossip",
        "--without-mingle",
        "--without-heartbeat",
    ])
