"""
Core services for the application.

This package contains the alert evaluation engine and everything it is built
from: reading storage, rule/trend/correlation evaluators, alert decorators,
the alert channel and the periodic evaluation driver.
"""

from .alert_engine import AlertEngine
from .channel import AlertChannel
from .correlation import CorrelationEvaluator
from .decorators import AlertDecorator, PriorityDecorator, RepeatingDecorator
from .monitor import PatientMonitor
from .reading_store import ReadingStore
from .rules import RuleSet
from .trend import TrendEvaluator

__all__ = [
    "AlertChannel",
    "AlertDecorator",
    "AlertEngine",
    "CorrelationEvaluator",
    "PatientMonitor",
    "PriorityDecorator",
    "ReadingStore",
    "RepeatingDecorator",
    "RuleSet",
    "TrendEvaluator",
]
