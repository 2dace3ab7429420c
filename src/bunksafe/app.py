"""Interactive CLI application."""
import logging
from datetime import date

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from bunksafe.calendar_rules import to_calendar_date
from bunksafe.config import configure_logging, get_settings
from bunksafe.dashboard import (
    SORT_KEYS, get_analytics, get_dashboard, get_month_calendar, get_overall_color,
    get_overall_label,
)
from bunksafe.db import init_db
from bunksafe.exceptions import BunkSafeError, ValidationError
from bunksafe.marking import Mark, add_extra_class, get_day_schedule, mark_attendance
from bunksafe.models import AttendanceStatus, DayType, SlotType
from bunksafe.projection import percentage_color, status_color
from bunksafe.semester import (
    get_holidays, get_semester_config, get_setting, get_username, reset_start_date,
    save_semester, set_setting,
)
from bunksafe.subjects import add_subject, delete_subject, get_subjects, update_subject
from bunksafe.timetable import DAY_NAMES, add_slot, delete_slot, format_time, get_timetable

logger = logging.getLogger(__name__)

console = Console()

STATUS_KEYS = {"p": AttendanceStatus.PRESENT, "a": AttendanceStatus.ABSENT, "c": AttendanceStatus.CANCELLED, "-": None}
MARKER_STYLE = {"present": "bold green", "absent": "bold red", "unmarked": "yellow", "none": "dim"}


def parse_date_input(text: str) -> date:
    try:
        return to_calendar_date(text)
    except (ValueError, TypeError):
        raise ValidationError(f"Not a date (expected YYYY-MM-DD): {text}") from None


def parse_int_list(text: str) -> list[int]:
    try:
        return [int(part) for part in text.replace(" ", "").split(",") if part]
    except ValueError:
        raise ValidationError(f"Expected comma-separated numbers: {text}") from None


def parse_date_list(text: str) -> list[date]:
    return [parse_date_input(part) for part in text.replace(" ", "").split(",") if part]


def show_welcome():
    console.print(Panel(
        "[bold]BunkSafe[/bold]\n[dim]Semester Attendance Tracker[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("dashboard", "Overall attendance at a glance"),
        ("analytics", "Per-subject stats and projections"),
        ("mark", "Mark attendance for a day"),
        ("calendar", "Month view of marked days"),
        ("setup", "Semester dates, Saturday offs, holidays"),
        ("subjects", "Manage subjects and targets"),
        ("timetable", "Manage the weekly timetable"),
        ("reset", "Restart counting from today"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def percentage_bar(pct: float, color: str, width: int = 20) -> str:
    filled = int(pct / 100 * width)
    return f"[{color}]{'█' * filled}{'░' * (width - filled)}[/{color}]"


def cmd_dashboard(db_path: str):
    summary = get_dashboard(db_path)
    pct = summary["percentage"]
    color = get_overall_color(pct)
    console.print(Panel(f"[bold]Hi, {summary['username']}![/bold]", title="BunkSafe Dashboard", border_style="blue"))
    if not summary["complete"]:
        console.print("[yellow]Some data could not be loaded; showing a neutral view.[/yellow]")
    console.print(
        f"\n  Overall Attendance: [bold]{pct:.0f}%[/bold] {percentage_bar(pct, color)} "
        f"[{color}]{get_overall_label(pct)}[/{color}]\n"
    )
    console.print(f"  Attended: [bold]{summary['attended']}[/bold]  |  "
                  f"Total: [bold]{summary['total']}[/bold]  |  "
                  f"Subjects: [bold]{summary['subject_count']}[/bold]  |  "
                  f"Today's classes: [bold]{summary['todays_classes']}[/bold]")


def cmd_analytics(db_path: str):
    sort_by = Prompt.ask("Sort by", choices=list(SORT_KEYS), default=get_setting(db_path, "analytics_sort", "percentage"))
    set_setting(db_path, "analytics_sort", sort_by)
    report = get_analytics(db_path, sort_by=sort_by)
    overall = report["overall"]
    semester = report["semester"]
    console.print(Panel(
        f"Semester start: [bold]{semester['start']}[/bold]  |  Days elapsed: [bold]{semester['days_elapsed']}[/bold]\n"
        f"Overall: [bold]{overall.percentage:.0f}%[/bold] "
        f"([green]{overall.attended} present[/green], [red]{overall.total - overall.attended} absent[/red])",
        title="Attendance Analytics", border_style="blue",
    ))
    if not report["stats"]:
        console.print("[yellow]No subject statistics yet.[/yellow]")
        return
    table = Table(title="Subjects")
    table.add_column("Subject", style="cyan")
    table.add_column("Attended", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Status")
    for s in report["stats"]:
        pct_color = percentage_color(s.percentage, s.target)
        st_color = status_color(s.status)
        table.add_row(
            f"[{s.color}]●[/] {s.name}",
            str(s.attended),
            str(s.total),
            f"[{pct_color}]{s.percentage:.0f}%[/{pct_color}]",
            f"{s.target:g}%",
            f"[{st_color}]{s.status.value}[/{st_color}]",
        )
    console.print(table)
    for s in report["stats"]:
        console.print(f"  [{status_color(s.status)}]{s.name}:[/{status_color(s.status)}] {s.message}")


def cmd_mark(db_path: str):
    day = parse_date_input(Prompt.ask("Date", default=date.today().isoformat()))
    schedule = get_day_schedule(db_path, day)
    console.print(f"\n[bold]Classes on {day.strftime('%A, %b %d, %Y')}[/bold]")
    if not schedule:
        console.print("[dim]No classes scheduled.[/dim]")
    marks = []
    for item in schedule:
        current = item["status"]
        default = next(k for k, v in STATUS_KEYS.items() if v == current)
        label = " (extra)" if item["extra"] else ""
        console.print(
            f"  [{item['color']}]●[/] {item['subject_name']}{label} "
            f"[dim]{format_time(item['start_time'])} - {format_time(item['end_time'])}[/dim]"
        )
        key = Prompt.ask("  p=present a=absent c=cancelled -=unmarked", choices=list(STATUS_KEYS), default=default)
        marks.append(Mark(
            subject_id=item["subject_id"], status=STATUS_KEYS[key], slot_id=item["slot_id"],
            start_time=item["start_time"] if item["extra"] else None,
            end_time=item["end_time"] if item["extra"] else None,
        ))
    written = mark_attendance(db_path, day, marks)
    console.print(f"[green]Saved {written} marks for {day.isoformat()}.[/green]")

    if Confirm.ask("Add an extra class?", default=False):
        subjects = get_subjects(db_path)
        if not subjects:
            console.print("[yellow]Add a subject first.[/yellow]")
            return
        for s in subjects:
            console.print(f"  [cyan]{s.id}[/cyan]) {s.name}")
        subject_id = IntPrompt.ask("Subject", choices=[str(s.id) for s in subjects])
        key = Prompt.ask("Status p/a/c", choices=["p", "a", "c"], default="p")
        start = Prompt.ask("Start time", default="09:00")
        end = Prompt.ask("End time", default="10:00")
        add_extra_class(db_path, day, subject_id, STATUS_KEYS[key], start, end)
        console.print("[green]Extra class recorded.[/green]")


def cmd_calendar(db_path: str):
    text = Prompt.ask("Month (YYYY-MM)", default=date.today().strftime("%Y-%m"))
    first = parse_date_input(f"{text}-01")
    days = get_month_calendar(db_path, first.year, first.month)
    table = Table(title=first.strftime("%B %Y"))
    for name in DAY_NAMES.values():
        table.add_column(name[:3], justify="center")
    row = [""] * (first.isoweekday() - 1)
    for d in days:
        if d["day_type"] == DayType.TEACHING:
            style = MARKER_STYLE[d["marker"]]
        else:
            style = "dim"
        row.append(f"[{style}]{d['date'].day}[/{style}]")
        if len(row) == 7:
            table.add_row(*row)
            row = []
    if row:
        table.add_row(*(row + [""] * (7 - len(row))))
    console.print(table)
    console.print("[bold green]present[/bold green]  [bold red]absent[/bold red]  "
                  "[yellow]unmarked[/yellow]  [dim]off / outside semester[/dim]")


def cmd_setup(db_path: str):
    config = get_semester_config(db_path)
    username = Prompt.ask("Username", default=get_username(db_path) or "")
    start = Prompt.ask("Semester start (YYYY-MM-DD)", default=config.start_date.isoformat() if config else None)
    end_default = config.end_date.isoformat() if config and config.end_date else None
    end = Prompt.ask("Semester end (YYYY-MM-DD)", default=end_default)
    offs_default = ",".join(str(w) for w in sorted(config.saturday_offs)) if config else ""
    offs = Prompt.ask("Saturday offs (week numbers 1-5, comma-separated)", default=offs_default)
    holidays_default = ",".join(h.date.isoformat() for h in get_holidays(db_path))
    holidays = Prompt.ask("Holidays (YYYY-MM-DD, comma-separated)", default=holidays_default)
    save_semester(
        db_path, username, parse_date_input(start), parse_date_input(end),
        parse_int_list(offs), parse_date_list(holidays),
    )
    console.print("[green]Semester saved.[/green]")


def show_subjects(subjects: list):
    table = Table(title="Subjects")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Target", justify="right")
    table.add_column("Color")
    for s in subjects:
        table.add_row(str(s.id), s.name, f"{s.target_percentage:g}%", f"[{s.color}]{s.color}[/]")
    console.print(table)


def cmd_subjects(db_path: str):
    show_subjects(get_subjects(db_path))
    action = Prompt.ask("Action", choices=["add", "edit", "delete", "back"], default="back")
    if action == "add":
        name = Prompt.ask("Name")
        target = IntPrompt.ask("Target %", default=75)
        color = Prompt.ask("Color", default="#3b82f6")
        subject = add_subject(db_path, name, target, color)
        console.print(f"[green]Added {subject.name}.[/green]")
    elif action == "edit":
        subject_id = IntPrompt.ask("Subject ID")
        name = Prompt.ask("New name (blank to keep)", default="")
        target = Prompt.ask("New target % (blank to keep)", default="")
        update_subject(db_path, subject_id, name=name or None, target=float(target) if target else None)
        console.print("[green]Subject updated.[/green]")
    elif action == "delete":
        subject_id = IntPrompt.ask("Subject ID")
        if Confirm.ask("This deletes all attendance data for this subject. Continue?", default=False):
            delete_subject(db_path, subject_id)
            console.print("[green]Subject deleted.[/green]")


def cmd_timetable(db_path: str):
    subjects = {s.id: s for s in get_subjects(db_path)}
    table = Table(title="Weekly Timetable")
    table.add_column("ID", justify="right")
    table.add_column("Day")
    table.add_column("Time")
    table.add_column("Class", style="cyan")
    for slot in get_timetable(db_path):
        if slot.slot_type == SlotType.SUBJECT:
            subject = subjects.get(slot.subject_id)
            label = subject.name if subject else "Unknown Subject"
        else:
            label = f"[dim]{slot.slot_type.value.title()}[/dim]"
        table.add_row(
            str(slot.id), DAY_NAMES[slot.day_of_week],
            f"{format_time(slot.start_time)} - {format_time(slot.end_time)}", label,
        )
    console.print(table)
    action = Prompt.ask("Action", choices=["add", "delete", "back"], default="back")
    if action == "add":
        day = IntPrompt.ask("Day (1=Mon .. 7=Sun)", choices=[str(d) for d in DAY_NAMES])
        slot_type = Prompt.ask("Type", choices=[t.value for t in SlotType], default=SlotType.SUBJECT.value)
        subject_id = None
        if slot_type == SlotType.SUBJECT.value:
            show_subjects(list(subjects.values()))
            subject_id = IntPrompt.ask("Subject ID")
        start = Prompt.ask("Start time", default="09:00")
        end = Prompt.ask("End time", default="10:00")
        add_slot(db_path, day, start, end, slot_type, subject_id)
        console.print("[green]Slot added.[/green]")
    elif action == "delete":
        delete_slot(db_path, IntPrompt.ask("Slot ID"))
        console.print("[green]Slot deleted.[/green]")


def cmd_reset(db_path: str):
    console.print("[yellow]Attendance before today will no longer be counted (logs are kept).[/yellow]")
    if Confirm.ask("Reset the semester start date to today?", default=False):
        new_start = reset_start_date(db_path)
        console.print(f"[green]Counting from {new_start.isoformat()}.[/green]")


COMMANDS = {
    "dashboard": cmd_dashboard,
    "analytics": cmd_analytics,
    "mark": cmd_mark,
    "calendar": cmd_calendar,
    "setup": cmd_setup,
    "subjects": cmd_subjects,
    "timetable": cmd_timetable,
    "reset": cmd_reset,
}


def run_command(db_path: str, choice: str) -> bool:
    """Run one menu command; returns False when the user asked to quit."""
    if choice in ("quit", "exit", "q"):
        console.print("[dim]See you in class![/dim]")
        return False
    command = COMMANDS.get(choice)
    if command is None:
        console.print("[red]Unknown command. Try again.[/red]")
        return True
    try:
        command(db_path)
    except BunkSafeError as e:
        console.print(f"[red]{e.message}[/red]")
    except KeyboardInterrupt:
        console.print("\n[dim]Use 'quit' to exit.[/dim]")
    except Exception as e:
        logger.exception("Command %s failed", choice)
        console.print(f"[red]Error: {e}[/red]")
    return True


def main():
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    db_path = settings.DB_PATH
    init_db(db_path)

    show_welcome()
    if get_semester_config(db_path) is None:
        console.print("[dim]No semester configured yet. Start with 'setup'.[/dim]")

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="dashboard").strip().lower()
        if not run_command(db_path, choice):
            break


if __name__ == "__main__":
    main()
