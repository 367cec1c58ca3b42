"""
Conflict resolution for pulled events

A merge policy takes the local projection of a job and the external event
and returns the values the job should end up with. The default lets the
calendar win, which is fine for one person editing one calendar; swap the
policy if both sides start being edited concurrently.
"""

from typing import Callable

from .event_mapping import EventFields

MergePolicy = Callable[[EventFields, EventFields], EventFields]


def external_wins(local: EventFields, external: EventFields) -> EventFields:
    return external


reconcile: MergePolicy = external_wins
