"""Command-line front end for the assessment portal."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import mimetypes
import sys
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from pathlib import Path

from assessportal.core.config import Settings, get_settings
from assessportal.core.logging import setup_logging
from assessportal.core.session import FileStorage, SessionStore
from assessportal.domain.models import Assessment, Result, User
from assessportal.domain.services.aggregator import PaginatedList, format_date, score_band
from assessportal.domain.services.mutations import ConfirmationRequest, Difficulty, DraftMode
from assessportal.domain.services.reports import EmptyReportError
from assessportal.libs.portal_client import PortalClient, UploadedFile
from assessportal.views import (
    AdminDashboardView,
    CandidateDashboardView,
    CreateAssessmentView,
    ExaminerDashboardView,
    GuardedView,
    LoginView,
    PortalContext,
    UserManagementView,
)

Handler = Callable[[argparse.Namespace, PortalContext], Awaitable[int]]


def build_context(settings: Settings) -> PortalContext:
    sessions = SessionStore(
        FileStorage(settings.resolved_session_path),
        key=settings.session_key,
    )
    client = PortalClient(settings.normalized_api_url, settings.timeout_seconds)
    return PortalContext(sessions=sessions, client=client, settings=settings)


def confirm(request: ConfirmationRequest, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    print(request.message)
    answer = input("Proceed? [y/N] ").strip().lower()
    return answer in {"y", "yes"}


async def activate(view: GuardedView) -> bool:
    if not await view.activate():
        print(f"Not signed in with a role allowed for {view.path}.", file=sys.stderr)
        return False
    if view.error:
        print(f"Error: {view.error}", file=sys.stderr)
        return False
    return True


def print_assessments(assessments: Sequence[Assessment]) -> None:
    if not assessments:
        print("  (no assessments)")
    for assessment in assessments:
        status = f" [{assessment.status}]" if assessment.status else ""
        print(
            f"  {assessment.id}  {assessment.title}{status}  "
            f"created {format_date(assessment.created_at, empty='-')}  "
            f"candidates {len(assessment.assigned_to)}"
        )


def print_results(results: Sequence[Result]) -> None:
    if not results:
        print("  (no results yet)")
    for result in results:
        print(
            f"  {result.assessment_title}: {result.score:g}/{result.max_score:g} "
            f"({result.percentage}%, {score_band(result.percentage)}) "
            f"attempt {result.attempt_number}"
        )


def print_more(listing: PaginatedList) -> None:
    if listing.hidden_count:
        print(f"  ... {listing.hidden_count} more (use --all)")


def print_users(title: str, users: Sequence[User]) -> None:
    print(f"{title} ({len(users)})")
    for user in users:
        joined = format_date(user.created_at, empty="-")
        print(f"  {user.id}  {user.name} <{user.email}>  joined {joined}")


# --- Handlers ---


async def cmd_login(args: argparse.Namespace, context: PortalContext) -> int:
    view = LoginView(context)
    password = args.password or getpass.getpass("Password: ")
    destination = await view.submit(args.email, password)

    if view.reset_required:
        print("This is your first login. Please set a new password.")
        new_password = args.new_password or getpass.getpass("New password: ")
        confirm_password = args.new_password or getpass.getpass("Confirm password: ")
        destination = await view.reset_password(new_password, confirm_password)

    if destination is None:
        print(f"Error: {view.error}", file=sys.stderr)
        return 1

    print(f"Signed in. Home: {destination}")
    return 0


async def cmd_logout(args: argparse.Namespace, context: PortalContext) -> int:
    context.sessions.clear()
    print("Signed out.")
    return 0


async def cmd_whoami(args: argparse.Namespace, context: PortalContext) -> int:
    session = context.sessions.load()
    if session is None:
        print("Not signed in.")
        return 1
    print(f"{session.name} <{session.email}> ({session.role})")
    return 0


async def cmd_admin(args: argparse.Namespace, context: PortalContext) -> int:
    view = AdminDashboardView(context)
    if not await activate(view):
        return 1
    print(f"Assessments ({len(view.assessments)})")
    print_assessments(view.assessments)
    return 0


async def cmd_delete_assessment(args: argparse.Namespace, context: PortalContext) -> int:
    view = AdminDashboardView(context)
    if not await activate(view):
        return 1
    try:
        request = view.request_delete(args.assessment_id)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    outcome = await view.confirm_delete(request, confirm(request, args.yes))
    print(outcome.message)
    return 0 if outcome.ok else 1


async def cmd_users(args: argparse.Namespace, context: PortalContext) -> int:
    view = UserManagementView(context)
    if not await activate(view):
        return 1
    print_users("Candidates", view.groups.candidates)
    print_users("Examiners", view.groups.examiners)
    print_users("Admins", view.groups.admins)
    return 0


async def cmd_create_user(args: argparse.Namespace, context: PortalContext) -> int:
    view = UserManagementView(context)
    if not await activate(view):
        return 1
    outcome = await view.create_user(name=args.name, email=args.email, role=args.role)
    print(outcome.message)
    return 0 if outcome.ok else 1


async def cmd_delete_user(args: argparse.Namespace, context: PortalContext) -> int:
    view = UserManagementView(context)
    if not await activate(view):
        return 1
    try:
        request = view.request_delete(args.user_id)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    outcome = await view.confirm_delete(request, confirm(request, args.yes))
    print(outcome.message)
    return 0 if outcome.ok else 1


async def _load_reports(args: argparse.Namespace, context: PortalContext) -> UserManagementView | None:
    view = UserManagementView(context)
    if not await activate(view):
        return None
    try:
        await view.view_reports(args.user_id)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None
    if view.error:
        print(f"Error: {view.error}", file=sys.stderr)
        return None
    return view


async def cmd_results(args: argparse.Namespace, context: PortalContext) -> int:
    view = await _load_reports(args, context)
    if view is None:
        return 1
    stats = view.report_stats
    print(f"Results for {view.selected_user.name}: {stats.count}")  # type: ignore[union-attr]
    if stats.count:
        print(f"  average {stats.average}%  best {stats.maximum}%")
    print_results(view.user_results)
    return 0


async def cmd_report(args: argparse.Namespace, context: PortalContext) -> int:
    view = await _load_reports(args, context)
    if view is None:
        return 1
    try:
        path = view.export_report(Path(args.out) if args.out else None)
    except EmptyReportError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Report written to {path}")
    return 0


async def cmd_examiner(args: argparse.Namespace, context: PortalContext) -> int:
    view = ExaminerDashboardView(context)
    if not await activate(view):
        return 1
    stats = view.stats
    print(
        f"Assessments {stats.total_assessments}  candidates {stats.total_candidates}  "
        f"average score {stats.avg_score}%"
    )
    if args.all:
        view.assessments.toggle()
    print_assessments(view.assessments.visible)
    print_more(view.assessments)
    return 0


async def cmd_candidate(args: argparse.Namespace, context: PortalContext) -> int:
    view = CandidateDashboardView(context)
    if not await activate(view):
        return 1
    stats = view.stats
    print(
        f"Upcoming {view.upcoming_count}  completed {view.completed_count}  "
        f"average score {stats.average}%"
    )
    if args.all:
        view.upcoming.toggle()
        view.results.toggle()
    print("Upcoming assessments")
    for assessment in view.upcoming.visible:
        duration = f"{assessment.duration_minutes} min" if assessment.duration_minutes else "-"
        print(f"  {assessment.title}  {format_date(assessment.scheduled_from)}  {duration}")
    if not len(view.upcoming):
        print("  (nothing scheduled)")
    print_more(view.upcoming)
    print("Past results")
    print_results(view.results.visible)
    print_more(view.results)
    return 0


async def cmd_candidates(args: argparse.Namespace, context: PortalContext) -> int:
    view = CreateAssessmentView(context)
    if not await activate(view):
        return 1
    for candidate in view.candidates:
        print(f"  {candidate.id}  {candidate.name} <{candidate.email}>")
    if not view.candidates:
        print("  (no candidates)")
    return 0


async def cmd_create_assessment(args: argparse.Namespace, context: PortalContext) -> int:
    view = CreateAssessmentView(context)
    if not await activate(view):
        return 1

    draft = view.draft
    draft.title = args.title
    draft.description = args.description
    draft.duration_minutes = args.duration
    draft.time_per_question = args.time_per_question
    draft.difficulty = Difficulty(args.difficulty)
    draft.scheduled_from = args.scheduled_from
    draft.scheduled_to = args.scheduled_to
    if args.file:
        path = Path(args.file)
        try:
            content = path.read_bytes()
        except OSError as exc:
            print(f"Error: cannot read {path}: {exc.strerror or exc}", file=sys.stderr)
            return 1
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        draft.mode = DraftMode.UPLOAD
        draft.upload = UploadedFile(path.name, content, content_type)
    else:
        draft.mode = DraftMode.GENERATE
        draft.prompt = args.prompt or ""
    for candidate_id in dict.fromkeys(args.candidate or []):
        view.toggle_candidate(candidate_id)

    destination = await view.submit()
    if destination is None:
        print(f"Error: {view.error}", file=sys.stderr)
        return 1
    print(f"Assessment created: {draft.title}")
    return 0


# --- Parser ---


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="assessportal", description="Assessment portal client")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in and cache the session")
    login.add_argument("--email", required=True)
    login.add_argument("--password")
    login.add_argument("--new-password", help="New password when a first-login change is required")
    login.set_defaults(handler=cmd_login)

    sub.add_parser("logout", help="Forget the cached session").set_defaults(handler=cmd_logout)
    sub.add_parser("whoami", help="Show the cached session").set_defaults(handler=cmd_whoami)
    sub.add_parser("admin", help="Admin dashboard").set_defaults(handler=cmd_admin)

    delete_assessment = sub.add_parser("delete-assessment", help="Delete an assessment")
    delete_assessment.add_argument("assessment_id")
    delete_assessment.add_argument("--yes", action="store_true", help="Skip confirmation")
    delete_assessment.set_defaults(handler=cmd_delete_assessment)

    sub.add_parser("users", help="List users by role").set_defaults(handler=cmd_users)

    create_user = sub.add_parser("create-user", help="Create a user account")
    create_user.add_argument("--name", required=True)
    create_user.add_argument("--email", required=True)
    create_user.add_argument(
        "--role", default="examiner", choices=["candidate", "examiner", "admin"]
    )
    create_user.set_defaults(handler=cmd_create_user)

    delete_user = sub.add_parser("delete-user", help="Delete a user account")
    delete_user.add_argument("user_id")
    delete_user.add_argument("--yes", action="store_true", help="Skip confirmation")
    delete_user.set_defaults(handler=cmd_delete_user)

    results = sub.add_parser("results", help="Show a user's results")
    results.add_argument("user_id")
    results.set_defaults(handler=cmd_results)

    report = sub.add_parser("report", help="Export a user's full report (.xlsx)")
    report.add_argument("user_id")
    report.add_argument("--out", help="Directory for the workbook")
    report.set_defaults(handler=cmd_report)

    for name, handler, help_text in (
        ("examiner", cmd_examiner, "Examiner dashboard"),
        ("candidate", cmd_candidate, "Candidate dashboard"),
    ):
        dashboard = sub.add_parser(name, help=help_text)
        dashboard.add_argument("--all", action="store_true", help="Show every item")
        dashboard.set_defaults(handler=handler)

    sub.add_parser("candidates", help="List assignable candidates").set_defaults(
        handler=cmd_candidates
    )

    create = sub.add_parser("create-assessment", help="Create an assessment")
    create.add_argument("--title", required=True)
    create.add_argument("--description", default="")
    source = create.add_mutually_exclusive_group(required=True)
    source.add_argument("--prompt", help="Generate questions from this prompt")
    source.add_argument("--file", help="Build questions from this document")
    create.add_argument("--candidate", action="append", help="Assign a candidate id")
    create.add_argument("--from", dest="scheduled_from", type=datetime.fromisoformat)
    create.add_argument("--to", dest="scheduled_to", type=datetime.fromisoformat)
    create.add_argument("--duration", type=int, default=30, help="Minutes")
    create.add_argument("--time-per-question", type=int, default=0, help="Seconds, 0 for none")
    create.add_argument(
        "--difficulty", default="medium", choices=[level.value for level in Difficulty]
    )
    create.set_defaults(handler=cmd_create_assessment)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    settings = get_settings()
    setup_logging(settings.log_level)

    args = build_parser().parse_args(argv)
    context = build_context(settings)
    handler: Handler = args.handler
    return asyncio.run(handler(args, context))


if __name__ == "__main__":
    sys.exit(main())
