"""
Portfolio Bot
=============

Conversational agent for a personal portfolio website.

This package provides:
- A dialog orchestration engine (dialog stack, waterfalls, prompts)
- A middleware pipeline run around every inbound turn
- Adapters for state storage, intent recognition and mail delivery
- The portfolio dialog content
"""

__version__ = "1.0.0"
