"""Scheduler adapters for driving the check loop.

Implementations:
- Interval (single asyncio repeating timer, restartable with a new delay)
"""
