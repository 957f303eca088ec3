"""Mapping from resolved activities to activity-table rows.

Used both when a submission commits directly and when a queued activity is
later approved, so both paths write identical rows.
"""

from typing import List, Optional

from models.activity import ActivityKind, ResolvedActivity
from storage.base import DomainRecord


RECORD_TABLE_BY_KIND = {
    ActivityKind.MILKING: "milking_records",
    ActivityKind.FEEDING: "feeding_records",
    ActivityKind.WEIGHT_MEASUREMENT: "weight_records",
    ActivityKind.INJECTION: "injection_records",
    ActivityKind.HEALTH_OBSERVATION: "health_records",
    ActivityKind.CLEANING: "cleaning_records",
}


def _bulk_feeding_note(activity: ResolvedActivity) -> str:
    plan = activity.distribution
    if activity.quantity is not None and activity.unit:
        amount = f"{activity.quantity:g} {activity.unit}"
    else:
        amount = f"{plan.total_kg:g} kg"
    note = f"Bulk feeding - {amount} distributed proportionally"
    if activity.notes:
        note = f"{note}. {activity.notes}"
    return note


def build_records(
    activity: ResolvedActivity,
    farm_id: str,
    created_by: str,
    submission_id: Optional[str] = None,
) -> List[DomainRecord]:
    """Rows to write for one resolved activity.

    A bulk feeding yields one feeding row per animal in its distribution
    plan; every other activity yields exactly one row.
    """
    table = RECORD_TABLE_BY_KIND[activity.activity_type]
    base = {
        "farm_id": farm_id,
        "record_date": activity.record_date.isoformat(),
        "record_datetime": activity.record_datetime.isoformat(),
        "created_by": created_by,
        "submission_id": submission_id,
    }
    kind = activity.activity_type

    if kind == ActivityKind.FEEDING and activity.is_bulk:
        note = _bulk_feeding_note(activity)
        return [
            DomainRecord(table, {
                **base,
                "animal_id": share.animal_id,
                "feed_type": activity.feed_type,
                "kilograms": share.feed_kg,
                "quantity": activity.quantity,
                "unit": activity.unit,
                "weight_per_unit": activity.weight_per_unit,
                "notes": note,
            })
            for share in activity.distribution.shares
        ]

    values = {**base, "animal_id": activity.animal_id}
    if kind == ActivityKind.MILKING:
        values.update(liters=activity.quantity, livestock_type=activity.livestock_type, notes=activity.notes)
    elif kind == ActivityKind.FEEDING:
        values.update(
            feed_type=activity.feed_type,
            kilograms=activity.kilograms,
            quantity=activity.quantity,
            unit=activity.unit,
            weight_per_unit=activity.weight_per_unit,
            notes=activity.notes,
        )
    elif kind == ActivityKind.WEIGHT_MEASUREMENT:
        values.update(weight_kg=activity.quantity, notes=activity.notes)
    elif kind == ActivityKind.INJECTION:
        values.update(medicine_name=activity.medicine_name, dosage=activity.dosage, notes=activity.notes)
    else:
        values.update(notes=activity.notes)

    return [DomainRecord(table, values)]
