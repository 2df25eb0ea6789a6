"""Reconciliation and garbage collection of the reverse index."""

from texrender.reconcile.engine import ReconciliationEngine
from texrender.reconcile.housekeeper import Housekeeper

__all__ = ["Housekeeper", "ReconciliationEngine"]
