"""
CLI module for comment auditing.

Provides command-line tools for running audits and managing the API key.
"""

from comment_detox.cli.audit import main as audit_main

__all__ = ["audit_main"]
