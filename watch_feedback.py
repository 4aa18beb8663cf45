"""
Student-side feedback watcher.

Logs in to the portal API, then polls today's timetable every minute and
prints whenever a subject's feedback window opens or closes.
"""
import os
import logging

from rich.console import Console
from rich.logging import RichHandler

from portal.client import ApiScheduleSource, FeedbackPortalClient
from portal.services.feedback_gate import FeedbackGate
from portal.services.schedule_resolver import resolve_todays_subjects
from config import PORTAL_API_URL
from utils import iso_day_of_week, local_now

logger = logging.getLogger("feedback_watcher")
console = Console()


def build_gate(client, profile, clock=local_now, on_change=None):
    """Gate over the logged-in student's schedule, fetched through the API."""
    source = ApiScheduleSource(client)

    def fetch_subjects():
        return resolve_todays_subjects(
            iso_day_of_week(clock()), profile['batch_id'], profile['semester_number'],
            profile['id'], source,
        )

    return FeedbackGate(fetch_subjects, clock=clock, on_change=on_change)


def show_state(state):
    subject = state.active_subject
    if subject is None:
        console.print("[dim]No feedback window is open right now.[/dim]")
    elif state.already_submitted:
        console.print(f"[yellow]{subject.name}[/yellow] ({subject.start_time}-{subject.end_time}): "
                      "feedback already submitted.")
    else:
        console.print(f"[green]Feedback is open for {subject.name}[/green] "
                      f"({subject.start_time}-{subject.end_time}).")


if __name__ == "__main__":
    import argparse

    logging.basicConfig(level=logging.INFO, format="%(message)s",
                        handlers=[RichHandler(rich_tracebacks=True, show_path=False)])

    parser = argparse.ArgumentParser(description="Watch today's feedback windows.")
    parser.add_argument("--api-url", default=PORTAL_API_URL)
    parser.add_argument("--email", default=os.environ.get("PORTAL_EMAIL"))
    parser.add_argument("--password", default=os.environ.get("PORTAL_PASSWORD"))
    args = parser.parse_args()

    if not args.email or not args.password:
        parser.error("--email and --password (or PORTAL_EMAIL / PORTAL_PASSWORD) are required")

    client = FeedbackPortalClient(args.api_url)
    profile = client.login(args.email, args.password)
    gate = build_gate(client, profile, on_change=show_state)
    show_state(gate.state)

    try:
        gate.run()
    except KeyboardInterrupt:
        gate.stop()
        logger.info("Watcher stopped by user")
