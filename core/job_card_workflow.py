"""
Job card status workflow.

Transitions are permissive: any status may follow any other, backward moves
included. What the workflow guarantees is the bookkeeping around a change:
one history entry per change, and each milestone timestamp written once.
"""

from dataclasses import dataclass
from datetime import datetime

from core.models import JobCard, JobCardStatus, StatusHistoryEntry, TimelineStep

STATUS_ORDER: tuple[JobCardStatus, ...] = (
    JobCardStatus.RECEIVED,
    JobCardStatus.DIAGNOSIS,
    JobCardStatus.IN_PROGRESS,
    JobCardStatus.READY,
    JobCardStatus.DELIVERED,
)

STATUS_LABELS: dict[JobCardStatus, str] = {
    JobCardStatus.RECEIVED: "Vehicle Received",
    JobCardStatus.DIAGNOSIS: "Diagnosis Completed",
    JobCardStatus.IN_PROGRESS: "Repair in Progress",
    JobCardStatus.READY: "Ready for Delivery",
    JobCardStatus.DELIVERED: "Delivered",
}

# Column stamped the first time a card enters each status
MILESTONE_FIELDS: dict[JobCardStatus, str] = {
    JobCardStatus.DIAGNOSIS: "diagnosis_completed_at",
    JobCardStatus.IN_PROGRESS: "repair_started_at",
    JobCardStatus.READY: "ready_at",
    JobCardStatus.DELIVERED: "delivered_at",
}


@dataclass(frozen=True)
class Transition:
    """Bookkeeping for one status change, applied by JobCardService in a single UPDATE."""

    new_status: JobCardStatus
    history_entry: StatusHistoryEntry
    milestone_field: str | None
    timestamp: datetime


def initial_history(now: datetime, updated_by: str | None = None) -> list[StatusHistoryEntry]:
    """History of a freshly opened card: a single `received` entry."""
    return [
        StatusHistoryEntry(
            status=JobCardStatus.RECEIVED,
            timestamp=now,
            note="Vehicle received",
            updated_by=updated_by,
        )
    ]


def plan_transition(
    job_card: JobCard,
    new_status: JobCardStatus,
    now: datetime,
    note: str | None = None,
    updated_by: str | None = None,
) -> Transition | None:
    """
    Work out what a status assignment must record.

    Args:
        job_card: Card as currently persisted
        new_status: Requested status
        now: Transition time
        note: Optional note for the history entry
        updated_by: Who made the change

    Returns:
        Transition to apply, or None if the status is unchanged.
    """
    if new_status == job_card.status:
        return None

    return Transition(
        new_status=new_status,
        history_entry=StatusHistoryEntry(
            status=new_status,
            timestamp=now,
            note=note,
            updated_by=updated_by,
        ),
        milestone_field=MILESTONE_FIELDS.get(new_status),
        timestamp=now,
    )


def build_timeline(job_card: JobCard) -> list[TimelineStep]:
    """
    Fixed five-step timeline for tracking.

    A step is completed when it sits at or before the current status. Its
    timestamp is the first time the card entered that status, if ever.
    """
    current_index = STATUS_ORDER.index(job_card.status)

    first_seen: dict[JobCardStatus, datetime] = {}
    for entry in job_card.status_history:
        first_seen.setdefault(entry.status, entry.timestamp)

    return [
        TimelineStep(
            status=status,
            label=STATUS_LABELS[status],
            completed=index <= current_index,
            timestamp=first_seen.get(status),
        )
        for index, status in enumerate(STATUS_ORDER)
    ]
