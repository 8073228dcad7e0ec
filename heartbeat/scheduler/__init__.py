"""Scheduler Module

Sample-aligned periodic execution of registered callbacks.
"""

from .scheduler import ActionScheduler
from .timeline import ItemTimeline, invoke_callback

__all__ = ["ActionScheduler", "ItemTimeline", "invoke_callback"]
