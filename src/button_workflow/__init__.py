"""Button Workflow.

Assemble an ordered list of small UI actions behind a trigger control and
replay them, one after another, when the trigger is activated:
- a typed action schema and an editable workflow document
- a dispatcher mapping each action kind to its effect
- a sequential executor with fixed pacing between actions
- a CLI and a REST surface over a durable key-value store
"""

__version__ = "0.1.0"

from button_workflow.config import WorkflowSettings

__all__ = ["__version__", "WorkflowSettings"]
