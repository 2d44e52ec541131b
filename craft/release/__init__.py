"""Release preparation.

- fsm: the checkpoint state machine
- hook: the pre-release command
- prepare: `craft prepare`, from version resolution to the pushed branch
"""

from __future__ import annotations
