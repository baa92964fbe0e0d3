import asyncio
import sys
from datetime import date
from typing import List

from dosetrack.database import Database, MEDICATIONS
from dosetrack.logging_config import configure_logging
from dosetrack.models.common import format_dose
from dosetrack.models.medication import Medication
from dosetrack.models.schedule import MedicationSchedule
from dosetrack.services.documents import from_db, parse_object_id
from dosetrack.services.schedule_service import ScheduleService


def format_schedule(schedule: MedicationSchedule) -> List[str]:
    """Render a schedule as fixed-width table lines."""
    lines = [
        f"{schedule.medication_name} ({schedule.start_date} to {schedule.end_date})",
        "-" * 80,
        f"{'Date':<12} | {'Day':<10} | {'Dose':<20} | {'Note'}",
        "-" * 80,
    ]
    for entry in schedule.schedule:
        lines.append(
            f"{entry.day.isoformat():<12} | {entry.day_of_week:<10} | "
            f"{entry.display_text:<20} | {entry.pattern_change_note or ''}"
        )
    lines.append("-" * 80)
    summary = schedule.summary
    lines.append(
        f"Total: {format_dose(summary.total_dosage)}{schedule.dosage_unit} over "
        f"{summary.scheduled_days} scheduled day(s), {summary.pattern_cycles} cycle(s)"
    )
    return lines


async def print_schedule(medication_id: str, start_date: date, days: int):
    await Database.connect()
    try:
        object_id = parse_object_id(medication_id)
        doc = await Database.get_collection(MEDICATIONS).find_one({"_id": object_id}) if object_id else None
        if not doc:
            print(f"Medication {medication_id} not found.")
            return

        schedule = await ScheduleService.generate_schedule(
            Medication(**from_db(doc)), start_date=start_date, days=days
        )
        for line in format_schedule(schedule):
            print(line)
    finally:
        await Database.disconnect()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python print_schedule.py <medication_id> [start_date] [days]")
        sys.exit(1)

    configure_logging(level="WARNING")
    start = date.fromisoformat(sys.argv[2]) if len(sys.argv) > 2 else date.today()
    days = int(sys.argv[3]) if len(sys.argv) > 3 else 14

    if sys.platform == 'win32':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(print_schedule(sys.argv[1], start, days))
