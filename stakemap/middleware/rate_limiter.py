"""
Rate limiting configuration.

The Limiter instance is created in stakemap/__init__.py with no default
limits; this module applies per-blueprint limits.

Usage:
    from stakemap.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# blueprint name → limit string
BLUEPRINT_LIMITS = {
    "action_plan": "120/minute",
    "report": "120/minute",
    "stakeholder": "120/minute",
    "kpi": "120/minute",
    "option_set": "120/minute",
    "audit": "60/minute",
}


def init_rate_limits(app, limiter):
    """Apply BLUEPRINT_LIMITS to registered blueprints (skipped when disabled)."""
    if not app.config.get("RATELIMIT_ENABLED", True):
        return

    for name, limit in BLUEPRINT_LIMITS.items():
        bp = app.blueprints.get(name)
        if bp is None:
            logger.warning("Rate limit configured for unknown blueprint %s", name)
            continue
        limiter.limit(limit)(bp)

    app.logger.debug("Rate limits applied to %d blueprints", len(BLUEPRINT_LIMITS))
