"""
Core module for shared domain infrastructure.

This module contains:
- Domain events and exceptions
- Infrastructure abstractions (clock, event bus)
- Metrics, Celery tasks and management commands
"""
