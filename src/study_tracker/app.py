"""Interactive CLI application."""
import logging
from datetime import date, timedelta

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from study_tracker.config import resolve_config
from study_tracker.dashboard import get_streak_color, get_streak_label, get_study_stats, week_start_for
from study_tracker.db import create_group, get_groups, init_db
from study_tracker.intervals import intervals_for, review_count_options
from study_tracker.models import Task
from study_tracker.review_tasks import (
    get_overdue_and_today_tasks, get_review_count_by_date_range, is_overdue,
    mark_as_completed, mark_as_incomplete, reschedule,
)
from study_tracker.schedule import get_upcoming_deadline_tasks
from study_tracker.sessions import start_session
from study_tracker.study import (
    finish_timer_session, get_today_tasks, is_premium, is_review_enabled,
    set_premium, set_review_enabled,
)
from study_tracker.tasks import delete_task, get_all_active_tasks, get_task_count_by_date_range, insert_task

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """Raised when the user leaves a multi-step prompt early."""


def session_prompt(prompt: str, choices: list[str] | None = None, **kwargs) -> str:
    """Prompt.ask that lets 'q' or 'menu' escape back to the main menu.

    Choices are checked here rather than by rich so the exit words always pass.
    """
    if choices:
        prompt = f"{prompt} [magenta][{'/'.join(choices)}][/magenta]"
    while True:
        answer = Prompt.ask(prompt, **kwargs)
        if answer.strip().lower() in EXIT_WORDS:
            raise SessionExitRequested()
        if not choices or answer in choices:
            return answer
        console.print("[red]Please select one of the available options.[/red]")


def session_int_prompt(prompt: str, choices: list[str] | None = None, minimum: int | None = None, **kwargs) -> int:
    while True:
        answer = session_prompt(prompt, **kwargs).strip()
        if not answer.removeprefix("-").isdecimal() or (choices is not None and answer not in choices):
            console.print("[red]Please enter a valid number.[/red]")
        elif minimum is not None and int(answer) < minimum:
            console.print(f"[red]Please enter a number no smaller than {minimum}.[/red]")
        else:
            return int(answer)


def show_welcome():
    console.print(Panel(
        "[bold]Study Tracker[/bold]\n[dim]Schedules, reviews and streaks[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("today", "Tasks and reviews due today"),
        ("calendar", "Items per day for the next 4 weeks"),
        ("log", "Record a finished study session"),
        ("reviews", "Complete or reschedule reviews"),
        ("tasks", "Add or delete tasks"),
        ("stats", "Streaks and weekly minutes"),
        ("plan", "Subscription tier and review settings"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def describe_schedule(task: Task) -> str:
    kind = task.schedule_type.value
    if task.repeat_days:
        labels = "月火水木金土日"
        return f"{kind} ({''.join(labels[d - 1] for d in sorted(task.repeat_days))})"
    if task.deadline_date:
        return f"{kind} ({task.deadline_date.isoformat()})"
    if task.specific_date:
        return f"{kind} ({task.specific_date.isoformat()})"
    return kind


def cmd_today(db_path: str, today: date | None = None):
    today = today or date.today()
    result = get_today_tasks(db_path, today)
    table = Table(title=f"Today ({today.isoformat()})")
    table.add_column("Kind")
    table.add_column("Item")
    table.add_column("Detail")
    for task in result["scheduled_tasks"]:
        table.add_row("task", task.name, describe_schedule(task))
    for review in result["review_tasks"]:
        detail = f"review #{review.review_number} on {review.scheduled_date.isoformat()}"
        style = "red" if is_overdue(review, today) else "green"
        table.add_row(f"[{style}]review[/{style}]", review.task_name or f"task {review.task_id}", detail)
    console.print(table)
    console.print(f"[bold]{result['total_count']}[/bold] items due")

    deadlines = get_upcoming_deadline_tasks(get_all_active_tasks(db_path), today)
    if deadlines:
        upcoming = Table(title="Deadlines this week")
        upcoming.add_column("Task")
        upcoming.add_column("Deadline")
        upcoming.add_column("Left", justify="right")
        for task in deadlines:
            left = (task.deadline_date - today).days
            upcoming.add_row(task.name, task.deadline_date.isoformat(), f"{left} day{'s' if left != 1 else ''}")
        console.print(upcoming)


def cmd_calendar(db_path: str, today: date | None = None):
    start = week_start_for(today or date.today())
    end = start + timedelta(days=27)
    task_counts = get_task_count_by_date_range(db_path, start, end)
    review_counts = get_review_count_by_date_range(db_path, start, end)
    table = Table(title=f"{start.isoformat()} – {end.isoformat()}")
    for label in "月火水木金土日":
        table.add_column(label, justify="center")
    for week in range(4):
        cells = []
        for offset in range(7):
            day = start + timedelta(days=week * 7 + offset)
            tasks, reviews = task_counts.get(day, 0), review_counts.get(day, 0)
            marks = (f"[cyan]{tasks}t[/cyan]" if tasks else "") + (f" [magenta]{reviews}r[/magenta]" if reviews else "")
            cells.append(f"{day.day}\n{marks.strip()}")
        table.add_row(*cells)
    console.print(table)


def choose_task(db_path: str) -> Task | None:
    tasks = get_all_active_tasks(db_path)
    if not tasks:
        console.print("[yellow]No tasks yet. Use 'tasks' to add one.[/yellow]")
        return None
    for t in tasks:
        console.print(f"  [cyan]{t.id}[/cyan]) {t.name} [dim]{describe_schedule(t)}[/dim]")
    task_id = session_int_prompt("Task", choices=[str(t.id) for t in tasks])
    return next(t for t in tasks if t.id == task_id)


def cmd_log(db_path: str, planned_minutes: int = 25):
    task = choose_task(db_path)
    if task is None:
        return
    minutes = session_int_prompt("Minutes studied", minimum=0, default=str(planned_minutes))
    cycles = session_int_prompt("Cycles completed", minimum=0, default="1")
    interrupted = session_prompt("Interrupted?", choices=["y", "n"], default="n") == "y"
    session = start_session(db_path, task.id, planned_minutes)
    reviews = finish_timer_session(db_path, session.id, task.id, minutes, cycles, interrupted)
    console.print(f"[green]Logged {minutes} min for {task.name}.[/green]")
    for r in reviews:
        console.print(f"  review #{r.review_number} → {r.scheduled_date.isoformat()}")


def cmd_reviews(db_path: str, today: date | None = None):
    today = today or date.today()
    reviews = get_overdue_and_today_tasks(db_path, today)
    if not reviews:
        console.print("[green]No reviews due. Nice![/green]")
        return
    table = Table(title="Pending Reviews")
    table.add_column("ID", justify="right")
    table.add_column("Task")
    table.add_column("#", justify="right")
    table.add_column("Scheduled")
    for r in reviews:
        when = f"[red]{r.scheduled_date.isoformat()}[/red]" if is_overdue(r, today) else r.scheduled_date.isoformat()
        table.add_row(str(r.id), r.task_name or str(r.task_id), str(r.review_number), when)
    console.print(table)
    action = session_prompt("Action", choices=["done", "undo", "move", "back"], default="done")
    if action == "back":
        return
    review_id = session_int_prompt("Review ID")
    if action == "done":
        mark_as_completed(db_path, review_id)
    elif action == "undo":
        mark_as_incomplete(db_path, review_id)
    else:
        days = session_int_prompt("Move by how many days", default="1")
        reschedule(db_path, review_id, today + timedelta(days=days))
    console.print("[green]Updated.[/green]")


def cmd_tasks(db_path: str):
    action = session_prompt("Action", choices=["add", "delete", "back"], default="add")
    if action == "back":
        return
    if action == "delete":
        task = choose_task(db_path)
        if task:
            delete_task(db_path, task.id)
            console.print(f"[green]Deleted {task.name} and its reviews.[/green]")
        return

    groups = get_groups(db_path)
    for g in groups:
        console.print(f"  [cyan]{g['id']}[/cyan]) {g['name']}")
    group_name = session_prompt("Subject (existing id or new name)")
    match = next((g for g in groups if str(g["id"]) == group_name), None)
    group_id = match["id"] if match else create_group(db_path, group_name)
    name = session_prompt("Task name")
    kind = session_prompt("Schedule", choices=["none", "repeat", "deadline", "specific"], default="none")
    if kind == "repeat":
        raw = session_prompt("Days (1=Mon .. 7=Sun, comma separated)")
        days = {int(p) for p in raw.split(",") if p.strip().isdigit()}
        task = Task.repeating(0, group_id, name, days)
    elif kind in ("deadline", "specific"):
        day = date.fromisoformat(session_prompt("Date (YYYY-MM-DD)"))
        task = Task.with_deadline(0, group_id, name, day) if kind == "deadline" else Task.on_date(0, group_id, name, day)
    else:
        task = Task.unscheduled(0, group_id, name)
    task_id = insert_task(db_path, task)
    console.print(f"[green]Added task {task_id}: {name}[/green]")


def cmd_stats(db_path: str, today: date | None = None):
    stats = get_study_stats(db_path, today or date.today())
    streak = stats["current_streak"]
    color = get_streak_color(streak)
    console.print(Panel(
        f"Current streak: [bold]{streak}[/bold] days [{color}]{get_streak_label(streak)}[/{color}]\n"
        f"Best streak: [bold]{stats['max_streak']}[/bold] days",
        title="Study Stats", border_style="blue",
    ))
    peak = max((d.minutes for d in stats["weekly_data"]), default=0) or 1
    for d in stats["weekly_data"]:
        filled = int(d.minutes / peak * 20)
        console.print(f"  {d.day_of_week} [cyan]{'█' * filled}{'░' * (20 - filled)}[/cyan] {d.minutes} min")
    console.print(f"\n  Today: [bold]{stats['today_minutes']}[/bold] min  |  "
                  f"Week: [bold]{stats['this_week_minutes']}[/bold] min  |  "
                  f"Month: [bold]{stats['this_month_minutes']}[/bold] min  |  "
                  f"Avg/day: [bold]{stats['average_daily_minutes']}[/bold] min  |  "
                  f"Sessions: [bold]{stats['total_sessions']}[/bold]")


def cmd_plan(db_path: str):
    premium = is_premium(db_path)
    console.print(f"Tier: [bold]{'premium' if premium else 'free'}[/bold]  |  "
                  f"Reviews: [bold]{'on' if is_review_enabled(db_path) else 'off'}[/bold]")
    console.print(f"Default intervals: {intervals_for(premium)}  |  Count options: {review_count_options(premium)}")
    action = session_prompt("Action", choices=["tier", "reviews", "back"], default="back")
    if action == "tier":
        set_premium(db_path, not premium)
    elif action == "reviews":
        set_review_enabled(db_path, not is_review_enabled(db_path))


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main():
    config = resolve_config()
    setup_logging(config.log_level)
    db_path = str(config.db_path)
    init_db(db_path)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="today").strip().lower()
        try:
            if choice == "today":
                cmd_today(db_path)
            elif choice == "calendar":
                cmd_calendar(db_path)
            elif choice == "log":
                cmd_log(db_path, config.planned_minutes)
            elif choice == "reviews":
                cmd_reviews(db_path)
            elif choice == "tasks":
                cmd_tasks(db_path)
            elif choice == "stats":
                cmd_stats(db_path)
            elif choice == "plan":
                cmd_plan(db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Keep the streak going![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except SessionExitRequested:
            console.print("[dim]Back to menu.[/dim]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.exception("Command %s failed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
