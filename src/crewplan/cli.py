"""Command-line interface for the crewplan scheduling engine."""

import argparse
import json
import logging
import sys
from datetime import date, datetime, time, timedelta
from typing import Optional

from crewplan.domain.availability import AvailabilityStore
from crewplan.domain.errors import SchedulingError
from crewplan.domain.models import (
    Job,
    TimeWindow,
    WeeklyHours,
    Worker,
    efficiency_rating,
    worker_utilization,
)
from crewplan.domain.snapshot import Snapshot, load_snapshot, save_assignments
from crewplan.output.pdf_generator import PDFGenerator
from crewplan.scheduling.heuristic_planner import PlannerConfig, PlannerStrategy
from crewplan.scheduling.recommender import (
    RecommendationEngine,
    RecommendationWeights,
    RecommenderConfig,
)
from crewplan.scheduling.weekly_planner import WeeklyPlanner
from crewplan.timeline.axis import format_duration, format_time_12h
from crewplan.timeline.controller import ControllerConfig, ViewMode, ViewToggleController
from crewplan.timeline.view_model import TimelineConfig

logger = logging.getLogger(__name__)

SKILLS = ["hvac", "plumbing", "electrical", "gas"]


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def create_sample_workers(count: int = 6, first_day: Optional[date] = None) -> list[Worker]:
    """Create sample workers with varied skills and hours.

    Args:
        count: Number of workers to create.
        first_day: Monday of the week to fill. Defaults to this week.
    """
    if first_day is None:
        first_day = week_start(date.today())

    names = [
        "Alice", "Bob", "Carol", "David", "Eve", "Frank", "Grace", "Henry",
        "Ivy", "Jack", "Kate", "Leo", "Mia", "Noah", "Olivia", "Paul",
    ]

    workers = []
    for i in range(count):
        name = names[i % len(names)]
        if i >= len(names):
            name = f"{name}{i // len(names) + 1}"

        # Vary hours: early, standard, late, split shift
        if i % 4 == 0:
            day_hours = [(time(7, 0), time(15, 0))]
        elif i % 4 == 1:
            day_hours = [(time(9, 0), time(17, 0))]
        elif i % 4 == 2:
            day_hours = [(time(11, 0), time(19, 0))]
        else:
            day_hours = [(time(8, 0), time(12, 0)), (time(13, 0), time(17, 0))]

        weekdays = range(5) if i % 3 else range(6)  # Some also work Saturdays
        template = WeeklyHours(hours={d: list(day_hours) for d in weekdays})

        skills = {SKILLS[i % len(SKILLS)]}
        if i % 2 == 0:
            skills.add(SKILLS[(i + 1) % len(SKILLS)])

        workers.append(
            Worker(
                id=f"W{i + 1:03d}",
                name=name,
                skills=frozenset(skills),
                availability=template.expand(first_day, 7),
                weekly_capacity_minutes=2400,
            )
        )

    return workers


def create_sample_jobs(count: int = 20, first_day: Optional[date] = None) -> list[Job]:
    """Create sample jobs spread across the working week."""
    if first_day is None:
        first_day = week_start(date.today())

    durations = [60, 90, 120, 180, 240]
    jobs = []
    for i in range(count):
        day = first_day + timedelta(days=i % 5)
        earliest = datetime.combine(day, time(8, 0))
        # Some jobs may slip to the next day
        latest = datetime.combine(day + timedelta(days=i % 2), time(18, 0))
        jobs.append(
            Job(
                id=f"J{i + 1:03d}",
                title=f"Service call {i + 1}",
                required_skills=frozenset({SKILLS[i % len(SKILLS)]}),
                duration_minutes=durations[i % len(durations)],
                earliest_start=earliest,
                latest_finish=latest,
            )
        )
    return jobs


def _print_plan(result, store: AvailabilityStore, week: TimeWindow, all_assignments) -> None:
    print(f"\n{'=' * 60}")
    print(f"Weekly Plan: {week.start.date()} to {(week.end - timedelta(days=1)).date()}")
    print(f"{'=' * 60}")
    print(f"  Status: {result.status}")
    print(f"  Placed: {result.scheduled_count}")
    print(f"  Unassigned: {len(result.unassigned_job_ids)}")
    if result.unassigned_job_ids:
        print(f"    {', '.join(result.unassigned_job_ids)}")

    if result.conflicts:
        print(f"\n  Verification: FAILED ({len(result.conflicts)} conflicts)")
        for conflict in result.conflicts[:5]:
            print(f"    - {conflict}")
    else:
        print("\n  Verification: PASSED")

    print("\nWorker Load:")
    for worker in store.workers():
        utilization = worker_utilization(worker, all_assignments, week)
        count = sum(1 for a in all_assignments if a.worker_id == worker.id)
        print(
            f"  {worker.name} ({worker.id}): {count} jobs, {utilization:.0f}% "
            f"[{efficiency_rating(utilization).value}]"
        )


def _render_pdf(view, workers: list[Worker], output_path: str) -> None:
    print(f"\nGenerating PDF: {output_path}")
    PDFGenerator().generate(view, {w.id: w for w in workers}, output_path)
    print("  PDF created successfully!")


def run_demo(
    worker_count: int = 6,
    job_count: int = 20,
    strategy: str = "greedy",
    output_path: Optional[str] = None,
) -> None:
    """Plan a week of sample jobs and print the outcome."""
    first_day = week_start(date.today())
    print(f"Planning {job_count} jobs for {worker_count} workers ({strategy})...")

    workers = create_sample_workers(worker_count, first_day)
    jobs = create_sample_jobs(job_count, first_day)
    store = AvailabilityStore(workers)
    week = TimeWindow.for_week(first_day)

    planner = WeeklyPlanner(PlannerConfig(strategy=PlannerStrategy(strategy)))
    result = planner.plan(jobs, store, [], week)
    _print_plan(result, store, week, result.assignments)

    if output_path:
        controller = ViewToggleController(
            first_day,
            ControllerConfig(initial_mode=ViewMode.WEEKLY, pixel_width=PDFGenerator().timeline_width),
        )
        view = controller.load(workers, result.assignments, store)
        _render_pdf(view, workers, output_path)


def _resolve_week(snapshot: Snapshot, week: Optional[str], job: Optional[Job] = None) -> date:
    if week:
        return week_start(date.fromisoformat(week))
    if job is not None:
        return week_start(job.earliest_start.date())
    if snapshot.jobs:
        return week_start(min(j.earliest_start for j in snapshot.jobs).date())
    return week_start(date.today())


def run_recommend(snapshot_path: str, job_id: str, week: Optional[str], limit: int, options: Optional[str]) -> int:
    """Print ranked recommendations for one job of a snapshot."""
    snapshot = load_snapshot(snapshot_path)
    job = snapshot.get_job(job_id)
    if job is None:
        print(f"Job {job_id} not found in {snapshot_path}", file=sys.stderr)
        return 1

    first_day = _resolve_week(snapshot, week, job)
    store = snapshot.availability_store(first_day)

    config = RecommenderConfig(max_results=limit)
    if options:
        config.weights = RecommendationWeights.from_options(json.loads(options))

    engine = RecommendationEngine(config)
    ranked = engine.recommend(job, store, snapshot.assignments, TimeWindow.for_week(first_day))

    print(f"Recommendations for {job.id} ({format_duration(job.duration_minutes)}):")
    if not ranked:
        print("  No worker can take this job in the selected week.")
        return 0
    for position, rec in enumerate(ranked, 1):
        worker = store.get_worker(rec.worker_id)
        print(
            f"  {position}. {worker.name} ({rec.worker_id}) "
            f"{rec.start.strftime('%a %d')} {format_time_12h(rec.start)}-{format_time_12h(rec.end)} "
            f"score={rec.score:.3f} [{', '.join(rec.rationale)}]"
        )
    return 0


def run_plan(snapshot_path: str, week: Optional[str], strategy: str, output: Optional[str]) -> int:
    """Plan every pending job of a snapshot."""
    snapshot = load_snapshot(snapshot_path)
    first_day = _resolve_week(snapshot, week)
    store = snapshot.availability_store(first_day)
    week_range = TimeWindow.for_week(first_day)

    planner = WeeklyPlanner(PlannerConfig(strategy=PlannerStrategy(strategy)))
    result = planner.plan(snapshot.jobs, store, snapshot.assignments, week_range)
    _print_plan(result, store, week_range, list(snapshot.assignments) + result.assignments)

    if output:
        save_assignments(result.assignments, output)
        print(f"\nWrote {result.scheduled_count} assignments to {output}")
    return 0 if not result.conflicts else 1


def run_timeline(
    snapshot_path: str,
    view: str,
    day: Optional[str],
    width: float,
    output_path: Optional[str],
) -> int:
    """Print (and optionally render) a daily or weekly timeline."""
    snapshot = load_snapshot(snapshot_path)
    anchor = date.fromisoformat(day) if day else _resolve_week(snapshot, None)
    store = snapshot.availability_store(week_start(anchor))

    mode = ViewMode.DAILY if view == "day" else ViewMode.WEEKLY
    if output_path:
        width = PDFGenerator().timeline_width
    controller = ViewToggleController(
        anchor,
        ControllerConfig(initial_mode=mode, pixel_width=width, timeline=TimelineConfig(row_height=40)),
    )
    timeline = controller.load(store.workers(), snapshot.assignments, store)

    space = timeline.space
    print(f"{mode.value.title()} timeline {space.range_start:%Y-%m-%d %H:%M} to {space.range_end:%Y-%m-%d %H:%M}")
    for row in timeline.rows:
        print(f"  {row.worker_name} ({row.worker_id}) {row.utilization:.0f}% booked")
        for block in row.blocks:
            flag = " !" if block.in_conflict else ""
            print(
                f"    {block.job_id}: x={block.rect.x:.1f} w={block.rect.width:.1f} "
                f"({block.start:%a %H:%M}-{block.end:%H:%M}){flag}"
            )
    if timeline.conflict_count:
        print(f"\n  Conflicts: {timeline.conflict_count}")

    if output_path:
        _render_pdf(timeline, store.workers(), output_path)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="crewplan - weekly job planning and timeline scheduling",
        prog="crewplan",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    demo_parser = subparsers.add_parser("demo", help="Plan a week of sample jobs")
    demo_parser.add_argument("--count", "-c", type=int, default=6, help="Number of workers (default: 6)")
    demo_parser.add_argument("--jobs", "-j", type=int, default=20, help="Number of jobs (default: 20)")
    demo_parser.add_argument(
        "--strategy", "-s",
        type=str,
        default="greedy",
        choices=["greedy", "cpsat"],
        help="Planning strategy (default: greedy)",
    )
    demo_parser.add_argument("--pdf", "-o", type=str, help="Output PDF file path")

    rec_parser = subparsers.add_parser("recommend", help="Rank placements for one job")
    rec_parser.add_argument("snapshot", type=str, help="Snapshot JSON file")
    rec_parser.add_argument("job_id", type=str, help="Job to place")
    rec_parser.add_argument("--week", "-w", type=str, help="Any date in the week to search (YYYY-MM-DD)")
    rec_parser.add_argument("--limit", "-l", type=int, default=5, help="Maximum results (default: 5)")
    rec_parser.add_argument(
        "--weights",
        type=str,
        help='JSON weight options, e.g. \'{"fitWeight": 0.6, "balanceWeight": 0.4}\'',
    )

    plan_parser = subparsers.add_parser("plan", help="Plan all pending jobs of a snapshot")
    plan_parser.add_argument("snapshot", type=str, help="Snapshot JSON file")
    plan_parser.add_argument("--week", "-w", type=str, help="Any date in the week to plan (YYYY-MM-DD)")
    plan_parser.add_argument(
        "--strategy", "-s",
        type=str,
        default="greedy",
        choices=["greedy", "cpsat"],
        help="Planning strategy (default: greedy)",
    )
    plan_parser.add_argument("--output", "-o", type=str, help="Write new assignments as JSON")

    timeline_parser = subparsers.add_parser("timeline", help="Show a daily or weekly timeline")
    timeline_parser.add_argument("snapshot", type=str, help="Snapshot JSON file")
    timeline_parser.add_argument("--view", type=str, default="week", choices=["day", "week"])
    timeline_parser.add_argument("--date", "-d", type=str, help="Day to show (YYYY-MM-DD)")
    timeline_parser.add_argument("--width", type=float, default=1440.0, help="Timeline width in pixels")
    timeline_parser.add_argument("--pdf", "-o", type=str, help="Output PDF file path")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "demo":
            run_demo(args.count, args.jobs, args.strategy, args.pdf)
            return 0
        elif args.command == "recommend":
            return run_recommend(args.snapshot, args.job_id, args.week, args.limit, args.weights)
        elif args.command == "plan":
            return run_plan(args.snapshot, args.week, args.strategy, args.output)
        elif args.command == "timeline":
            return run_timeline(args.snapshot, args.view, args.date, args.width, args.pdf)
        else:
            parser.print_help()
            return 1
    except (SchedulingError, ValueError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
