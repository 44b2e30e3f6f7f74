"""Interactive CLI dashboard."""
import logging
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from prep_planner.config import Settings, get_settings
from prep_planner.curriculum import load_curriculum
from prep_planner.dashboard import (
    get_category_breakdown, get_progress_color, get_progress_label, get_study_stats,
    get_urgency_color, get_week_breakdown,
)
from prep_planner.enrichment import enricher_from_settings
from prep_planner.importer import import_file
from prep_planner.models import DAY_TYPES, DayConstraint, WEEKDAY_NAMES
from prep_planner.planner import StudyPlanner
from prep_planner.progress import completed_subtopic_indices, completion_percentage
from prep_planner.schedule import weekly_schedule

console = Console()
logger = logging.getLogger(__name__)

MAX_PASSWORD_ATTEMPTS = 3


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def check_password(settings: Settings) -> bool:
    if not settings.dashboard_password:
        return True
    for attempt in range(1, MAX_PASSWORD_ATTEMPTS + 1):
        entered = Prompt.ask("Password", password=True)
        if entered == settings.dashboard_password:
            return True
        remaining = MAX_PASSWORD_ATTEMPTS - attempt
        if remaining:
            console.print(f"[red]Incorrect password.[/red] {remaining} attempt(s) left.")
    console.print("[red]Too many failed attempts.[/red]")
    return False


def show_welcome(planner: StudyPlanner):
    cfg = planner.config
    storage = "saved to disk" if planner.persistent else "memory only"
    console.print(Panel(
        f"[bold]C++ Placement Preparation Planner[/bold]\n"
        f"[dim]{cfg.start_date} to {cfg.end_date} | {planner.curriculum.total_weeks} weeks | {storage}[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("today", "Today's study plan"),
        ("schedule", "Regenerate the full schedule"),
        ("topics", "Browse topics and tick off subtopics"),
        ("progress", "Progress dashboard"),
        ("constraints", "Exams, holidays and other special days"),
        ("labdays", "Set weekly lab days"),
        ("import", "Import an academic calendar"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def cmd_today(planner: StudyPlanner, day: date | None = None):
    plan = planner.daily_plan(day)
    console.print(Panel(
        f"[bold]{plan.date:%A, %d %B %Y}[/bold]\n"
        f"Day type: [cyan]{plan.day_type}[/cyan] | Available: [bold]{plan.total_available_hours:g}h[/bold]",
        title="Today's Study Plan",
    ))
    if not plan.suggestions:
        console.print("[yellow]Nothing to study today. Rest up![/yellow]")
    for ts in plan.suggestions:
        table = Table(title=ts.topic_title)
        table.add_column("Time")
        table.add_column("Activity")
        for slot in ts.time_slots:
            table.add_row(f"{slot.start}-{slot.end}", slot.activity,
                          style="dim" if slot.activity == "Break" else None)
        console.print(table)
        for sub in ts.subtopics:
            console.print(f"  [cyan]{sub.estimated_minutes}m[/cyan] {sub.title} [dim]({sub.priority}: {sub.reason})[/dim]")
    if plan.tips:
        console.print("\n[bold]Tips:[/bold]")
        for tip in plan.tips:
            console.print(f"  - {tip}")


def cmd_schedule(planner: StudyPlanner, current_date: date | None = None):
    with console.status("Generating schedule..."):
        schedule = planner.regenerate_schedule(current_date)
    if schedule is None:
        console.print("[yellow]A schedule is already being generated.[/yellow]")
        return
    guarantee = schedule.completion_guarantee
    color = "green" if guarantee.all_topics_covered else "red"
    console.print(Panel(
        f"[{color}]{'All remaining topics covered' if guarantee.all_topics_covered else 'Not all topics fit'}[/{color}]\n"
        f"Required {guarantee.required_hours:g}h | Allocated {guarantee.allocated_hours:g}h | "
        f"Available {guarantee.available_hours:g}h\n"
        f"Expected completion: {guarantee.expected_completion_date or 'n/a'}"
        + ("\n[dim]Includes AI suggestions[/dim]" if schedule.enriched else ""),
        title="Completion Guarantee", border_style=color,
    ))

    table = Table(title="Scheduled Topics")
    table.add_column("Week", justify="right")
    table.add_column("Topic", style="cyan")
    table.add_column("Dates")
    table.add_column("Hours", justify="right")
    table.add_column("Urgency")
    for week, topics in sorted(weekly_schedule(schedule.scheduled_topics).items()):
        for st in topics:
            dates = f"{st.start_date} to {st.end_date}" if st.start_date else "unscheduled"
            uc = get_urgency_color(st.urgency_level)
            table.add_row(
                str(week), planner.curriculum.get_topic(st.topic_id).title, dates,
                f"{st.allocated_hours:g}/{st.required_hours:g}", f"[{uc}]{st.urgency_level}[/{uc}]",
            )
    console.print(table)

    for title, items in (("Risks", guarantee.risk_factors), ("Recommendations", schedule.recommendations),
                         ("Adjustments", schedule.adjustments)):
        if items:
            console.print(f"\n[bold]{title}:[/bold]")
            for item in items:
                console.print(f"  - {item}")


def cmd_topics(planner: StudyPlanner):
    table = Table(title="Curriculum")
    table.add_column("Week", justify="right")
    table.add_column("Topic ID", style="cyan")
    table.add_column("Title")
    table.add_column("Hours", justify="right")
    table.add_column("Done", justify="right")
    for week, topic in planner.curriculum.topics():
        pct = completion_percentage(planner.progress, topic)
        color = get_progress_color(pct)
        table.add_row(str(week), topic.id, topic.title, f"{topic.estimated_hours:g}", f"[{color}]{pct:.0f}%[/{color}]")
    console.print(table)

    topic_id = Prompt.ask("Topic ID to open (Enter to go back)", default="").strip()
    if not topic_id:
        return
    topic = planner.curriculum.get_topic(topic_id)
    if topic is None:
        console.print(f"[red]Unknown topic: {topic_id}[/red]")
        return
    while True:
        done = completed_subtopic_indices(planner.progress, topic.id)
        console.print(f"\n[bold]{topic.title}[/bold] [dim]{topic.description}[/dim]")
        for i, title in enumerate(topic.subtopics):
            mark = "[green]done[/green]" if i in done else "[dim]todo[/dim]"
            console.print(f"  {mark} [cyan]{i:>2}[/cyan] {title}")
        choice = Prompt.ask("Subtopic number to toggle, 'all' to toggle the whole topic, Enter to finish", default="")
        choice = choice.strip().lower()
        if not choice:
            return
        if choice == "all":
            planner.update_topic_progress(topic.id, topic.id not in planner.progress.completed_topics)
            continue
        if not choice.isdigit() or int(choice) >= len(topic.subtopics):
            console.print("[red]Invalid subtopic number.[/red]")
            continue
        index = int(choice)
        planner.update_subtopic_progress(topic.id, index, index not in done)


def cmd_progress(planner: StudyPlanner):
    stats = get_study_stats(planner.plan, planner.curriculum)
    pct = stats["overall_percentage"]
    color = get_progress_color(pct)
    bar_filled = int(pct / 5)
    bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
    console.print(Panel(
        f"Overall: [bold]{pct}%[/bold] {bar} [{color}]{get_progress_label(pct)}[/{color}]",
        title="Progress Dashboard", border_style="blue",
    ))

    table = Table(title="Weekly Breakdown")
    table.add_column("Week", justify="right")
    table.add_column("Focus", style="cyan")
    table.add_column("Done", justify="right")
    table.add_column("Status")
    for row in get_week_breakdown(planner.curriculum, planner.progress):
        c = get_progress_color(row["percentage"])
        table.add_row(str(row["week_number"]), row["focus"], f"{row['percentage']}%", f"[{c}]{row['label']}[/{c}]")
    console.print(table)

    table = Table(title="Categories")
    table.add_column("Category", style="cyan")
    table.add_column("Topics", justify="right")
    table.add_column("Done", justify="right")
    for row in get_category_breakdown(planner.curriculum, planner.progress):
        c = get_progress_color(row["percentage"])
        table.add_row(row["category"], f"{row['completed']}/{row['total']}", f"[{c}]{row['percentage']}%[/{c}]")
    console.print(table)

    console.print(f"\n  Subtopics: [bold]{stats['subtopics_done']}/{stats['subtopics_total']}[/bold]  |  "
                  f"Hours: [bold]{stats['hours_studied']}/{stats['hours_total']:g}[/bold]  |  "
                  f"Sessions: [bold]{stats['sessions_completed']}/{stats['sessions_total']}[/bold]")


def cmd_constraints(planner: StudyPlanner):
    constraints = planner.config.constraints
    if constraints:
        table = Table(title="Constraints")
        table.add_column("Date")
        table.add_column("Type", style="cyan")
        table.add_column("Description")
        for c in constraints:
            table.add_row(c.date.isoformat(), c.type, c.description)
        console.print(table)
    else:
        console.print("[dim]No constraints set.[/dim]")

    action = Prompt.ask("Action", choices=["add", "range", "remove", "back"], default="back")
    try:
        if action == "add":
            day = date.fromisoformat(Prompt.ask("Date (YYYY-MM-DD)"))
            day_type = Prompt.ask("Type", choices=list(DAY_TYPES), default="exam")
            planner.add_constraint(DayConstraint(day, day_type, Prompt.ask("Description", default="")))
            console.print("[green]Constraint saved.[/green]")
        elif action == "range":
            start = date.fromisoformat(Prompt.ask("From (YYYY-MM-DD)"))
            end = date.fromisoformat(Prompt.ask("To (YYYY-MM-DD)"))
            day_type = Prompt.ask("Type", choices=list(DAY_TYPES), default="holiday")
            count = planner.add_constraint_range(start, end, day_type, Prompt.ask("Description", default=""))
            console.print(f"[green]{count} day(s) saved.[/green]")
        elif action == "remove":
            day = date.fromisoformat(Prompt.ask("Date (YYYY-MM-DD)"))
            if planner.remove_constraint(day):
                console.print("[green]Constraint removed.[/green]")
            else:
                console.print("[yellow]No constraint on that date.[/yellow]")
    except ValueError as e:
        console.print(f"[red]{e}[/red]")


def cmd_labdays(planner: StudyPlanner):
    current = ", ".join(planner.config.default_lab_days) or "none"
    console.print(f"Current lab days: [cyan]{current}[/cyan]")
    answer = Prompt.ask("Lab days (comma-separated weekday names, '-' for none)", default=current)
    days = [] if answer.strip() in ("-", "none") else [d.strip().lower() for d in answer.split(",") if d.strip()]
    unknown = [d for d in days if d not in WEEKDAY_NAMES]
    if unknown:
        console.print(f"[red]Unknown weekday(s): {', '.join(unknown)}[/red]")
        return
    planner.set_lab_days(days)
    console.print("[green]Lab days updated.[/green]")


def cmd_import(planner: StudyPlanner):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_file(planner, file_path)
    console.print(f"[green]Imported {result['added']} constraint(s) from {result['filename']}[/green]"
                  + (f" [yellow]({result['skipped']} skipped)[/yellow]" if result["skipped"] else ""))


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    planner = StudyPlanner(
        load_curriculum(),
        db_path=settings.db_path,
        enricher=enricher_from_settings(settings),
    )
    planner.initialize()
    if not check_password(settings):
        return

    show_welcome(planner)

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="today").strip().lower()
        try:
            if choice == "today":
                cmd_today(planner)
            elif choice == "schedule":
                cmd_schedule(planner)
            elif choice == "topics":
                cmd_topics(planner)
            elif choice == "progress":
                cmd_progress(planner)
            elif choice == "constraints":
                cmd_constraints(planner)
            elif choice == "labdays":
                cmd_labdays(planner)
            elif choice == "import":
                cmd_import(planner)
            elif choice in ("quit", "exit", "q"):
                planner.sync()
                console.print("[dim]Good luck with your placements![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.exception("Command %s failed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
