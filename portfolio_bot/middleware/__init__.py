"""
Turn Middleware

Hooks run in order around every inbound turn:
- Typing indicators
- Dialog version resets and the reset command
- Attachment detection
"""

from .pipeline import Middleware, MiddlewarePipeline, NextFn
from .builtin import DialogVersionMiddleware, SendTypingMiddleware
from .attachments import IMAGE_RECEIVED_DIALOG_ID, AttachmentDetectionMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextFn",
    "DialogVersionMiddleware",
    "SendTypingMiddleware",
    "IMAGE_RECEIVED_DIALOG_ID",
    "AttachmentDetectionMiddleware",
]
