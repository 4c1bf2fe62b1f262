"""Agent Activity Report - call-center agent status and login/logoff reporting.

This package retrieves agent status/activity reports and agent state-change
events from a telephony portal API, derives per-agent first login and last
logoff times, and renders the results as tables, CSV or JSON.
"""

__version__ = "0.1.0"

from agent_activity_report.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
