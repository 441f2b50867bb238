"""Workflow domain: action schema, document operations, dispatch and execution.

- `schema`: the closed set of action kinds and their params
- `document`: the ordered action list and its pure edit operations
- `dispatcher`: one action -> one side effect
- `executor`: sequential, paced runs over a document
"""

__all__: list[str] = []
