"""FastAPI server adapter for button-workflow.

Design intent:
- Keep workflow semantics in `button_workflow.workflow.*`
- Keep server-specific concerns (routing, CORS, the headless host) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from button_workflow.server.app import create_app
