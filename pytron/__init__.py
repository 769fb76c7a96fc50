#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron - Personal Time Tracker
Hourly activity log, analytics, badges, goals and pomodoro

Version: 1.0.0
"""

__version__ = "1.0.0"

__all__ = ['__version__']
