#!/usr/bin/env python3
"""
Daybook Planner - a personal calendar and task planner.

This is the command-line entry point.
"""

import sys
import argparse
from datetime import date, datetime, timedelta
from pathlib import Path

from daybook.calendar_grid import get_month_grid, get_week_days, layout_day, split_all_day
from daybook.config import Config
from daybook.date_utils import (
    DAY_NAMES, MONTH_ABBR, format_date, format_datetime, format_time, relative_date_description,
)
from daybook.errors import DaybookError
from daybook.models import Priority, validate_event_fields, validate_task_fields
from daybook.queries import TaskSort, TaskTab
from daybook.repository import Planner
from daybook.timezone_utils import local_date, set_timezone, to_utc_datetime


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Daybook Planner - calendar and task planner"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for name in ("month", "week", "day"):
        p = sub.add_parser(name, help=f"Show the {name} containing DATE")
        p.add_argument("date", nargs="?", type=date.fromisoformat, help="YYYY-MM-DD (default: today)")

    sub.add_parser("agenda", help="Upcoming events and tasks")

    p = sub.add_parser("tasks", help="List tasks")
    p.add_argument("--tab", choices=[t.value for t in TaskTab], default=TaskTab.ALL.value)
    p.add_argument("--sort", choices=[s.value for s in TaskSort], default=TaskSort.DUE_DATE.value)

    sub.add_parser("stats", help="Task statistics")

    p = sub.add_parser("add-event", help="Create an event")
    p.add_argument("title")
    p.add_argument("start", type=datetime.fromisoformat, help="YYYY-MM-DDTHH:MM (local time)")
    p.add_argument("--end", type=datetime.fromisoformat, help="default: start + default duration")
    p.add_argument("--category", default="")
    p.add_argument("--description")

    p = sub.add_parser("add-task", help="Create a task")
    p.add_argument("title")
    p.add_argument("--due", type=datetime.fromisoformat, help="YYYY-MM-DDTHH:MM (local time)")
    p.add_argument("--priority", choices=[pr.value for pr in Priority], default=Priority.MEDIUM.value)
    p.add_argument("--category", default="")

    p = sub.add_parser("toggle", help="Toggle a task's completion")
    p.add_argument("task_id")

    p = sub.add_parser("search", help="Search events and tasks")
    p.add_argument("query")

    p = sub.add_parser("export", help="Write a JSON backup")
    p.add_argument("path", nargs="?", type=Path, default=Path("."))

    p = sub.add_parser("import", help="Restore a JSON backup")
    p.add_argument("path", type=Path)

    p = sub.add_parser("ics", help="Export events as an iCalendar file")
    p.add_argument("path", type=Path)

    return parser.parse_args(argv)


def _today(planner: Planner) -> date:
    return local_date(planner.now())


def show_month(planner: Planner, day: date):
    settings = planner.settings
    grid = get_month_grid(day, settings.week_starts_on, planner.now())
    headers = [DAY_NAMES[(settings.week_starts_on + 6 + i) % 7][:2] for i in range(7)]
    print(f"{MONTH_ABBR[day.month - 1]} {day.year}".center(7 * 5))
    print(" ".join(f"{h:>4}" for h in headers))
    for row in range(6):
        cells = []
        for cell in grid[row * 7:(row + 1) * 7]:
            count = len(planner.events_on_date(cell.date))
            mark = "*" if cell.is_today else ("+" if count else " ")
            label = f"{cell.date.day:>2}" if cell.in_current_month else " ."
            cells.append(f"{label}{mark:>2}")
        print(" ".join(cells))


def show_week(planner: Planner, day: date):
    use_24h = planner.settings.uses_24h
    for d in get_week_days(day, planner.settings.week_starts_on):
        print(f"{DAY_NAMES[d.weekday()][:3]} {format_date(d)}")
        for event in planner.events_on_date(d):
            print(f"    {format_time(event.start_date, use_24h)}  {event.title}")


def show_day(planner: Planner, day: date, config: Config):
    use_24h = planner.settings.uses_24h
    print(f"{relative_date_description(day, planner.now())} - {format_date(day)}")
    events = planner.events_on_date(day)
    all_day, _ = split_all_day(events, day)
    for event in all_day:
        print(f"    All day  {event.title}")
    placed = layout_day(events, day, config.layout.hour_height, config.layout.min_event_minutes)
    if not placed and not all_day:
        print("    No events")
    for portion, position in placed:
        start = format_time(portion.event.start_date, use_24h)
        print(f"    {start}  {portion.event.title}  (top={position.top:.0f} height={position.height:.0f})")


def show_agenda(planner: Planner):
    use_24h = planner.settings.uses_24h
    print("Upcoming events:")
    for event in planner.upcoming_events():
        print(f"    {format_datetime(event.start_date, use_24h)}  {event.title}")
    print("Upcoming tasks:")
    for task in planner.upcoming_tasks():
        print(f"    {format_datetime(task.due_date, use_24h)}  [{task.priority.value}] {task.title}")
    overdue = planner.overdue_tasks()
    if overdue:
        print("Overdue:")
        for task in overdue:
            print(f"    {relative_date_description(task.due_date, planner.now())}  {task.title}")


def show_tasks(planner: Planner, tab: TaskTab, sort_by: TaskSort):
    for task in planner.tasks_for_tab(tab, sort_by):
        box = "x" if task.completed else " "
        due = format_date(task.due_date) if task.due_date else "-"
        print(f"[{box}] {task.id}  {due:<13} {task.priority.value:<6} {task.title}")


def show_stats(planner: Planner):
    stats = planner.task_stats()
    print(f"Total:       {stats.total}")
    print(f"Completed:   {stats.completed}")
    print(f"Pending:     {stats.pending}")
    print(f"Overdue:     {stats.overdue}")
    print(f"Due today:   {stats.due_today}")
    print(f"Completion:  {stats.completion_rate}%")


def run(args, config: Config, planner: Planner) -> int:
    command = args.command
    if command in ("month", "week", "day"):
        day = args.date or _today(planner)
        if command == "month":
            show_month(planner, day)
        elif command == "week":
            show_week(planner, day)
        else:
            show_day(planner, day, config)
    elif command == "agenda":
        show_agenda(planner)
    elif command == "tasks":
        show_tasks(planner, TaskTab(args.tab), TaskSort(args.sort))
    elif command == "stats":
        show_stats(planner)
    elif command == "add-event":
        start = to_utc_datetime(args.start)
        if args.end is not None:
            end = to_utc_datetime(args.end)
        else:
            end = start + timedelta(minutes=planner.settings.default_event_duration)
        validate_event_fields(args.title, start, end)
        event = planner.add_event(args.title, start, end,
                                  category=args.category, description=args.description)
        print(f"Event created successfully: {event.id}")
    elif command == "add-task":
        validate_task_fields(args.title)
        due = to_utc_datetime(args.due) if args.due else None
        task = planner.add_task(args.title, due_date=due,
                                priority=Priority(args.priority), category=args.category)
        print(f"Task created successfully: {task.id}")
    elif command == "toggle":
        task = planner.toggle_task_completion(args.task_id)
        if task is None:
            print(f"No task with id {args.task_id}", file=sys.stderr)
            return 1
        print(f"{task.title}: {'completed' if task.completed else 'pending'}")
    elif command == "search":
        for event in planner.search_events(args.query):
            print(f"event  {format_date(event.start_date)}  {event.title}")
        for task in planner.search_tasks(args.query):
            print(f"task   {task.title}")
    elif command == "export":
        path = planner.export_to_file(args.path)
        print(f"Data exported successfully to {path}")
    elif command == "import":
        if not planner.import_from_file(args.path):
            print("Failed to import data", file=sys.stderr)
            return 1
        print("Data imported successfully")
    elif command == "ics":
        args.path.write_bytes(planner.export_ics())
        print(f"Events exported to {args.path}")
    return 0


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nExample configuration:")
        print("""
[General]
storage_dir = "~/.local/share/daybook/storage"
timezone = "Europe/Amsterdam"

[Layout]
hour_height = 60
min_event_minutes = 30
""")
        sys.exit(1)
    except Exception as e:
        print(f"Error loading configuration: {e}")
        sys.exit(1)

    set_timezone(config.timezone)

    if args.debug:
        print(f"Loaded configuration from: {args.config or Config.get_default_config_path()}")
        print(f"  Storage directory: {config.storage_dir}")
        print(f"  Timezone: {config.timezone or 'system'}")

    planner = Planner.open(config.storage_dir, upcoming_days=config.layout.upcoming_days)

    try:
        sys.exit(run(args, config, planner))
    except DaybookError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
