#!/usr/bin/env python3
"""
Unified CLI for mileage registration.

Commands:
  init        - Create a new vehicle file
  meterstand  - Record a periodic odometer reading
  add         - Log a trip (odometer auto-calculated in auto_calculate mode)
  complete    - Add the end odometer to an incomplete trip
  return      - Log the return journey of a trip
  delete      - Remove a registration
  history     - View registrations
  incomplete  - List trips waiting for an end odometer
  expected    - Show the expected odometer at a moment in time
  report      - Trip totals and private kilometers for a period
  audit       - Check the trip history for gaps and rollbacks
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dateutil import parser as date_parser
from tabulate import tabulate

from mileage import (
    InMemoryQueue,
    MeterstandRecord,
    MileageError,
    TrackingMode,
    TripPurpose,
    TripRecord,
    TripRequest,
    TripService,
    Vehicle,
    YamlRecordStore,
    load_settings,
)
from mileage.compliance import analyze_compliance
from mileage.report import build_meterstand_report, build_odometer_report

# =============================================================================
# Formatting helpers
# =============================================================================


def parse_time(text: Optional[str]) -> int:
    """Parse a date/time string to milliseconds since epoch (default: now)."""
    moment = date_parser.parse(text) if text else datetime.now()
    return int(moment.timestamp() * 1000)


def format_time(timestamp: int) -> str:
    """Format milliseconds since epoch for display."""
    return datetime.fromtimestamp(timestamp / 1000).strftime("%Y-%m-%d %H:%M")


def format_km(km: Optional[float]) -> str:
    """Format kilometers for display."""
    return f"{km:,.0f}" if km is not None else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def format_route(trip: TripRecord) -> str:
    if trip.departure and trip.destination:
        return truncate(f"{trip.departure} -> {trip.destination}", 40)
    return truncate(trip.departure or trip.destination)


def make_history_table(registrations) -> List[List[str]]:
    """Convert registrations to table rows."""
    rows = []
    for reg in registrations:
        if isinstance(reg, MeterstandRecord):
            rows.append(
                [
                    reg.id,
                    format_time(reg.timestamp),
                    "meterstand",
                    format_km(reg.odometer_km),
                    "-",
                    "-",
                    truncate(reg.description),
                ]
            )
            continue
        kind = reg.purpose.value
        if reg.odometer_calculated:
            kind += " (calc)"
        rows.append(
            [
                reg.id,
                format_time(reg.timestamp),
                kind,
                format_km(reg.start_odometer_km),
                format_km(reg.end_odometer_km),
                format_km(reg.distance_km),
                format_route(reg),
            ]
        )
    return rows


def print_notifications(queue: InMemoryQueue) -> None:
    for job in queue.jobs:
        payload = job["payload"]
        print(f"[{job['type']}] {payload['title']}: {payload['message']}")


def _store_and_id(vehicle_file: Path):
    return YamlRecordStore(vehicle_file.parent), vehicle_file.stem


def _service(args, queue: InMemoryQueue) -> TripService:
    store, _ = _store_and_id(args.vehicle_file)
    return TripService(store, queue, settings=load_settings(args.config))


def _vehicle(args) -> Vehicle:
    store, vehicle_id = _store_and_id(args.vehicle_file)
    return store.load_vehicle(vehicle_id)


# =============================================================================
# Commands
# =============================================================================


def cmd_init(args):
    """Create a new vehicle file."""
    store, vehicle_id = _store_and_id(args.vehicle_file)
    vehicle = Vehicle(
        vehicle_id,
        args.plate,
        make=args.make,
        model=args.model,
        tracking_mode=TrackingMode(args.mode),
        owner_id=args.owner,
    )
    store.create_vehicle(vehicle)
    print(f"Created {args.vehicle_file} for {vehicle.name}")
    return 0


def cmd_meterstand(args):
    """Record a periodic odometer reading."""
    queue = InMemoryQueue()
    service = _service(args, queue)
    _, vehicle_id = _store_and_id(args.vehicle_file)
    timestamp = parse_time(args.at)

    print(f"Adding meterstand to {args.vehicle_file}:")
    print(f"  Time:     {format_time(timestamp)}")
    print(f"  Odometer: {format_km(args.odometer)} km")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    entry = service.create_meterstand(
        vehicle_id, timestamp, args.odometer, args.description, args.user
    )
    print(f"Meterstand saved ({entry.id}).")
    return 0


def cmd_add(args):
    """Log a trip."""
    queue = InMemoryQueue()
    service = _service(args, queue)
    _, vehicle_id = _store_and_id(args.vehicle_file)

    if args.dry_run:
        print(f"Would add trip to {args.vehicle_file}:")
        print(f"  Time:     {format_time(parse_time(args.at))}")
        print(f"  Start:    {format_km(args.start)} km")
        print(f"  End:      {format_km(args.end)} km")
        print(f"  Distance: {format_km(args.distance)} km")
        print()
        print("(dry run - no changes made)")
        return 0

    trip = service.create_trip(
        TripRequest(
            vehicle_id=vehicle_id,
            timestamp=parse_time(args.at),
            purpose=TripPurpose(args.purpose),
            start_odometer_km=args.start,
            end_odometer_km=args.end,
            distance_km=args.distance,
            departure=args.from_address,
            destination=args.to_address,
            description=args.description,
            private_detour_km=args.detour,
            user_id=args.user,
        )
    )

    print(f"Trip saved ({trip.id}):")
    print(f"  Time:     {format_time(trip.timestamp)}")
    print(f"  Start:    {format_km(trip.start_odometer_km)} km")
    print(f"  End:      {format_km(trip.end_odometer_km)} km")
    if trip.odometer_calculated:
        print("  Odometer calculated from meterstand entries")
    print()
    print_notifications(queue)
    return 0


def cmd_complete(args):
    """Add the end odometer to an incomplete trip."""
    queue = InMemoryQueue()
    service = _service(args, queue)
    _, vehicle_id = _store_and_id(args.vehicle_file)

    if args.dry_run:
        print(f"Would complete trip {args.trip_id} at {format_km(args.end)} km")
        print("(dry run - no changes made)")
        return 0

    trip = service.complete_trip(vehicle_id, args.trip_id, args.end, args.user)
    print(
        f"Trip {trip.id} completed: {format_km(trip.start_odometer_km)} -> "
        f"{format_km(trip.end_odometer_km)} km ({format_km(trip.distance_km)} km)"
    )
    print_notifications(queue)
    return 0


def cmd_return(args):
    """Log the return journey of a trip."""
    queue = InMemoryQueue()
    service = _service(args, queue)
    _, vehicle_id = _store_and_id(args.vehicle_file)

    if args.dry_run:
        print(f"Would log the return journey of trip {args.trip_id}")
        print("(dry run - no changes made)")
        return 0

    timestamp = parse_time(args.at) if args.at else None
    trip = service.create_return_journey(vehicle_id, args.trip_id, timestamp, args.user)
    print(f"Return journey saved ({trip.id}), starting at {format_km(trip.start_odometer_km)} km")
    print_notifications(queue)
    return 0


def cmd_delete(args):
    """Remove a registration."""
    queue = InMemoryQueue()
    service = _service(args, queue)
    _, vehicle_id = _store_and_id(args.vehicle_file)

    if args.dry_run:
        print(f"Would delete registration {args.registration_id}")
        print("(dry run - no changes made)")
        return 0

    service.delete_registration(vehicle_id, args.registration_id, args.user)
    print(f"Registration {args.registration_id} deleted.")
    return 0


def cmd_history(args):
    """View registrations."""
    vehicle = _vehicle(args)

    if args.kind == "trip":
        entries = vehicle.trips
    elif args.kind == "meterstand":
        entries = vehicle.meterstand_entries
    else:
        entries = sorted(vehicle.registrations, key=lambda r: r.timestamp)

    if args.since:
        since = parse_time(args.since)
        entries = [e for e in entries if e.timestamp >= since]
    if not args.asc:
        entries = list(reversed(entries))

    print(f"Vehicle: {vehicle.name} ({vehicle.license_plate})")
    print(f"Tracking mode: {vehicle.tracking_mode.value}")
    print(f"Highest odometer: {format_km(vehicle.highest_odometer)} km")
    print(f"Registrations: {len(vehicle.registrations)}")
    if args.since or args.kind != "all":
        print(f"Showing: {len(entries)} (filtered)")
    print()

    if not entries:
        print("No registrations found.")
        return 0

    headers = ["Id", "Time", "Type", "Start", "End", "Distance", "Route / Notes"]
    print(tabulate(make_history_table(entries), headers=headers, tablefmt="simple"))
    return 0


def cmd_incomplete(args):
    """List trips waiting for an end odometer."""
    vehicle = _vehicle(args)
    trips = vehicle.incomplete_trips
    if not trips:
        print("No incomplete trips.")
        return 0

    headers = ["Id", "Time", "Type", "Start", "End", "Distance", "Route / Notes"]
    print(tabulate(make_history_table(trips), headers=headers, tablefmt="simple"))
    return 0


def cmd_expected(args):
    """Show the expected odometer at a moment in time."""
    queue = InMemoryQueue()
    service = _service(args, queue)
    _, vehicle_id = _store_and_id(args.vehicle_file)
    timestamp = parse_time(args.at)

    expected = service.expected_odometer(vehicle_id, timestamp)
    if expected is None:
        print(f"No meterstand before {format_time(timestamp)}; add a reading first.")
        return 1
    print(f"Expected odometer at {format_time(timestamp)}: {format_km(expected)} km")
    return 0


def cmd_report(args):
    """Trip totals and private kilometers for a period."""
    vehicle = _vehicle(args)
    start_ts = parse_time(args.since) if args.since else None
    end_ts = parse_time(args.until) if args.until else None
    purpose = TripPurpose(args.purpose) if args.purpose else None

    report = build_odometer_report(vehicle, start_ts, end_ts, purpose)
    meterstand = build_meterstand_report(vehicle, start_ts, end_ts)

    print(f"Vehicle: {vehicle.name} ({vehicle.license_plate})")
    print()
    rows = [
        ["Trips", report.total_readings],
        ["Total distance", f"{format_km(report.total_distance_km)} km"],
        ["Business", f"{format_km(report.business_km)} km"],
        ["Commute", f"{format_km(report.commute_km)} km"],
        ["Private", f"{format_km(report.private_km)} km"],
        ["First odometer", f"{format_km(report.first_reading)} km"],
        ["Last odometer", f"{format_km(report.last_reading)} km"],
        ["Meterstand entries", len(meterstand.rows)],
        ["Meterstand distance", f"{format_km(meterstand.total_distance_km)} km"],
    ]
    print(tabulate(rows, tablefmt="simple"))
    return 0


def cmd_audit(args):
    """Check the trip history for gaps and rollbacks."""
    vehicle = _vehicle(args)
    settings = load_settings(args.config)
    report = analyze_compliance(vehicle, settings.gap_tolerance_km)

    print(f"Vehicle: {vehicle.name} ({vehicle.license_plate})")
    print(f"Compliance score: {report.score}/100")
    print(f"Unaccounted: {format_km(report.total_unaccounted_km)} km")
    print()

    if not report.deviations:
        print("No deviations found.")
        return 0

    rows = [
        [d.severity.label, d.type.value, d.trip_id, d.description]
        for d in sorted(report.deviations, key=lambda d: d.severity.value)
    ]
    print(tabulate(rows, headers=["Severity", "Type", "Trip", "Description"]))
    return 0


# =============================================================================
# Main
# =============================================================================


def main():
    parser = argparse.ArgumentParser(
        description="Mileage registration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s vehicles/corolla.yaml init --plate AB-123-C --mode auto_calculate
  %(prog)s vehicles/corolla.yaml meterstand 45210 --at "2025-01-01 08:00"
  %(prog)s vehicles/corolla.yaml add --at "2025-01-15 09:00" --distance 42 \\
      --from Utrecht --to Amersfoort
  %(prog)s vehicles/corolla.yaml add --start 45300 --end 45342 --purpose private
  %(prog)s vehicles/corolla.yaml complete 3f2a9c1b7d4e 45400
  %(prog)s vehicles/corolla.yaml history --kind trip --since 2025-01-01
  %(prog)s vehicles/corolla.yaml report --since 2025-01-01 --until 2025-12-31
  %(prog)s vehicles/corolla.yaml audit
""",
    )
    parser.add_argument("vehicle_file", type=Path, help="Path to vehicle YAML file")
    parser.add_argument("--config", type=Path, help="Settings YAML file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create a new vehicle file")
    init_parser.add_argument("--plate", required=True, help="License plate")
    init_parser.add_argument("--make", type=str)
    init_parser.add_argument("--model", type=str)
    init_parser.add_argument(
        "--mode",
        choices=[m.value for m in TrackingMode],
        default=TrackingMode.MANUAL.value,
        help="Odometer tracking mode (default: manual)",
    )
    init_parser.add_argument("--owner", type=str, help="Owner user id")

    meterstand_parser = subparsers.add_parser(
        "meterstand", help="Record a periodic odometer reading"
    )
    meterstand_parser.add_argument("odometer", type=float, help="Odometer in km")
    meterstand_parser.add_argument("--at", type=str, help="Time of reading (default: now)")
    meterstand_parser.add_argument("--description", type=str)
    meterstand_parser.add_argument("--user", type=str, help="Acting user id")
    meterstand_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be added without saving"
    )

    add_parser = subparsers.add_parser("add", help="Log a trip")
    add_parser.add_argument("--at", type=str, help="Trip start time (default: now)")
    add_parser.add_argument("--start", type=float, help="Start odometer in km")
    add_parser.add_argument("--end", type=float, help="End odometer in km")
    add_parser.add_argument("--distance", type=float, help="Trip distance in km")
    add_parser.add_argument(
        "--purpose",
        choices=[p.value for p in TripPurpose],
        default=TripPurpose.BUSINESS.value,
        help="Trip purpose (default: business)",
    )
    add_parser.add_argument("--from", dest="from_address", type=str, help="Departure")
    add_parser.add_argument("--to", dest="to_address", type=str, help="Destination")
    add_parser.add_argument("--description", type=str)
    add_parser.add_argument("--detour", type=float, help="Private detour in km")
    add_parser.add_argument("--user", type=str, help="Acting user id")
    add_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be added without saving"
    )

    complete_parser = subparsers.add_parser(
        "complete", help="Add the end odometer to an incomplete trip"
    )
    complete_parser.add_argument("trip_id", type=str)
    complete_parser.add_argument("end", type=float, help="End odometer in km")
    complete_parser.add_argument("--user", type=str, help="Acting user id")
    complete_parser.add_argument(
        "--dry-run", action="store_true", help="Show the change without saving"
    )

    return_parser = subparsers.add_parser("return", help="Log the return journey of a trip")
    return_parser.add_argument("trip_id", type=str, help="Outward trip id")
    return_parser.add_argument("--at", type=str, help="Return time (default: now)")
    return_parser.add_argument("--user", type=str, help="Acting user id")
    return_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be added without saving"
    )

    delete_parser = subparsers.add_parser("delete", help="Remove a registration")
    delete_parser.add_argument("registration_id", type=str)
    delete_parser.add_argument("--user", type=str, help="Acting user id")
    delete_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be deleted"
    )

    history_parser = subparsers.add_parser("history", help="View registrations")
    history_parser.add_argument(
        "--kind", choices=["all", "trip", "meterstand"], default="all"
    )
    history_parser.add_argument("--since", type=str, help="Only registrations since date")
    history_parser.add_argument(
        "--asc", action="store_true", help="Oldest first instead of newest first"
    )

    subparsers.add_parser("incomplete", help="List trips waiting for an end odometer")

    expected_parser = subparsers.add_parser(
        "expected", help="Show the expected odometer at a moment in time"
    )
    expected_parser.add_argument("--at", type=str, help="Moment (default: now)")

    report_parser = subparsers.add_parser("report", help="Trip totals for a period")
    report_parser.add_argument("--since", type=str, help="Period start date")
    report_parser.add_argument("--until", type=str, help="Period end date")
    report_parser.add_argument("--purpose", choices=[p.value for p in TripPurpose])

    subparsers.add_parser("audit", help="Check trip history for gaps and rollbacks")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command != "init" and not args.vehicle_file.exists():
        print(f"Error: File not found: {args.vehicle_file}")
        return 1

    commands = {
        "init": cmd_init,
        "meterstand": cmd_meterstand,
        "add": cmd_add,
        "complete": cmd_complete,
        "return": cmd_return,
        "delete": cmd_delete,
        "history": cmd_history,
        "incomplete": cmd_incomplete,
        "expected": cmd_expected,
        "report": cmd_report,
        "audit": cmd_audit,
    }
    try:
        return commands[args.command](args)
    except MileageError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
