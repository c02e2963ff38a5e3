"""Operator tools: python -m backend_moltid.tools.<name>."""
