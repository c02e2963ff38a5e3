"""
Structured logging for Backend MoltID.

JSON logs with timestamp, agent_id, event_type.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_moltid.moltid_logging.logger import bind_agent, bind_vouch, get_logger

__all__ = ["bind_agent", "bind_vouch", "get_logger"]
