#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron - Dashboard Dependencies
Service providers for the FastAPI routes

Version: 1.0.0
"""

import logging

from fastapi import HTTPException, Request, status

from pytron.services import ServiceManager
from pytron.services.tracker import DailyTracker
from pytron.services.timer_service import PomodoroTimer
from pytron.services.notifications import NotificationService

logger = logging.getLogger(__name__)

# ===== PROVIDERS =====

def get_services(request: Request) -> ServiceManager:
    services = getattr(request.app.state, 'services', None)
    if services is None or not services.initialized:
        logger.error("Services requested before initialization")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Services are not initialized"
        )
    return services

def get_tracker(request: Request) -> DailyTracker:
    return get_services(request).tracker

def get_timer(request: Request) -> PomodoroTimer:
    return get_services(request).timer

def get_notifications(request: Request) -> NotificationService:
    return get_services(request).notifications
