"""Reconciliation of external player history with cached positions."""
from .reconciler import HistoryReconciler

__all__ = ["HistoryReconciler"]
