"""
Family Hub - Source Package

Household data core for a family dashboard: tasks, calendar events,
subscriptions, family members and transactions mirrored from a remote
backend, plus the derived views and notifications built on top of them.

DESIGN PRINCIPLES:
1. The remote backend is the source of truth
2. Every write round-trips and reloads
3. Failures degrade, they never crash the dashboard
4. Every write is logged with a correlation id
5. Storage backend is swappable
"""

__version__ = "1.0.0"
__author__ = "Family Hub Team"
