"""Batch execution of client operations."""

from greader.executor.batch import BatchOrchestrator

__all__ = ["BatchOrchestrator"]
