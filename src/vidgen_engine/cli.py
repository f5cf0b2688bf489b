"""Command-line interface using Typer."""

from typing import Optional
from uuid import UUID, uuid4

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from vidgen_engine import __version__
from vidgen_engine.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="vidgen",
    help="VidGen Engine - prompt-to-video generation CLI",
    add_completion=False,
)

# Subcommand groups
api_keys_app = typer.Typer(help="API key management")
queue_app = typer.Typer(help="Render queue operations")
webhooks_app = typer.Typer(help="Webhook delivery operations")
app.add_typer(api_keys_app, name="api-keys")
app.add_typer(queue_app, name="queue")
app.add_typer(webhooks_app, name="webhooks")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"VidGen Engine v{__version__}")
        raise typer.Exit()


def parse_uuid(value: str, label: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        console.print(f"[bold red]Invalid {label}: {value}[/bold red]")
        raise typer.Exit(code=1)


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """VidGen Engine - turn prompts and assets into finished videos."""
    pass


@app.command()
def health() -> None:
    """Check the health of the API's dependencies."""
    import httpx

    from vidgen_engine.config import settings

    url = f"http://{settings.api_host}:{settings.api_port}/health/ready"

    try:
        response = httpx.get(url, timeout=10)
        data = response.json()
    except httpx.RequestError as e:
        console.print(f"[bold red]Cannot connect to API: {e}[/bold red]")
        console.print("[dim]Is the API server running?[/dim]")
        raise typer.Exit(code=1)

    table = Table(title="Service Health")
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_row("Database", "✓" if data.get("database") else "✗")
    table.add_row("Redis", "✓" if data.get("redis") else "✗")
    console.print(table)

    if not data.get("ready"):
        console.print("[bold yellow]Some services unhealthy[/bold yellow]")
        raise typer.Exit(code=1)
    console.print("[bold green]All services healthy![/bold green]")


@app.command()
def worker() -> None:
    """Start a Celery worker with beat (for development)."""
    console.print("[bold blue]Starting Celery worker...[/bold blue]")

    import subprocess
    import sys

    subprocess.run(
        [
            sys.executable, "-m", "celery", "-A", "vidgen_engine.worker",
            "worker", "--beat", "--loglevel=info",
            "-Q", "default,render,webhooks",
        ],
        check=True,
    )


# =============================================================================
# API KEY COMMANDS
# =============================================================================


@api_keys_app.command("create")
def api_keys_create(
    name: str = typer.Option(..., "--name", "-n", help="Label for the key"),
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="Owner ID (new owner if omitted)"),
    rate_limit: Optional[int] = typer.Option(None, "--rate-limit", "-r", help="Requests per minute"),
) -> None:
    """Issue a new API key. The key is shown once."""
    from vidgen_engine.db.session import get_session_context
    from vidgen_engine.services.api_keys import ApiKeyService

    owner_id = parse_uuid(owner, "owner ID") if owner else uuid4()

    with get_session_context() as session:
        issued = ApiKeyService(session).create(owner_id, name, rate_limit_per_minute=rate_limit)

        console.print(Panel.fit(
            f"[bold]{issued.raw_key}[/bold]\n\n"
            f"[cyan]Key ID:[/cyan] {issued.key.id}\n"
            f"[cyan]Owner ID:[/cyan] {issued.key.owner_id}\n"
            f"[cyan]Rate limit:[/cyan] {issued.key.rate_limit_per_minute}/min",
            title="API Key Created",
            border_style="green",
        ))
        console.print("[yellow]Store this key now; it cannot be shown again.[/yellow]")


@api_keys_app.command("list")
def api_keys_list(
    owner: str = typer.Argument(..., help="Owner ID (UUID)"),
) -> None:
    """List the keys of an owner."""
    from vidgen_engine.db.session import get_session_context
    from vidgen_engine.repositories.api_keys import ApiKeyRepository

    owner_id = parse_uuid(owner, "owner ID")

    with get_session_context() as session:
        keys = ApiKeyRepository(session).list_for_owner(owner_id)
        if not keys:
            console.print("[dim]No API keys found.[/dim]")
            return

        table = Table(title="API Keys")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Prefix")
        table.add_column("Status")
        table.add_column("Limit/min", justify="right")
        table.add_column("Last used")

        for key in keys:
            table.add_row(
                str(key.id),
                key.name,
                key.key_prefix,
                key.status,
                str(key.rate_limit_per_minute),
                key.last_used_at.strftime("%Y-%m-%d %H:%M") if key.last_used_at else "-",
            )
        console.print(table)


@api_keys_app.command("revoke")
def api_keys_revoke(
    key_id: str = typer.Argument(..., help="API key ID (UUID)"),
) -> None:
    """Revoke an API key."""
    from vidgen_engine.db.session import get_session_context
    from vidgen_engine.domain.errors import NotFoundError
    from vidgen_engine.services.api_keys import ApiKeyService

    key_uuid = parse_uuid(key_id, "key ID")

    with get_session_context() as session:
        try:
            ApiKeyService(session).revoke(key_uuid)
        except NotFoundError as e:
            console.print(f"[bold red]{e}[/bold red]")
            raise typer.Exit(code=1)

    console.print(f"[bold green]Revoked {key_id}[/bold green]")


@api_keys_app.command("expire")
def api_keys_expire() -> None:
    """Mark keys past their expiry date as expired."""
    from vidgen_engine.db.session import get_session_context
    from vidgen_engine.services.api_keys import ApiKeyService

    with get_session_context() as session:
        expired = ApiKeyService(session).expire_lapsed()

    console.print(f"Expired {expired} key(s)")


# =============================================================================
# QUEUE COMMANDS
# =============================================================================


@queue_app.command("stats")
def queue_stats() -> None:
    """Show render job counts per status."""
    from vidgen_engine.db.session import get_session_context
    from vidgen_engine.repositories.render_queue import RenderQueue

    with get_session_context() as session:
        stats = RenderQueue(session).stats()

    table = Table(title="Render Queue")
    table.add_column("Status", style="cyan")
    table.add_column("Jobs", justify="right")
    table.add_row("pending", str(stats.pending))
    table.add_row("processing", str(stats.processing))
    table.add_row("completed", str(stats.completed))
    table.add_row("failed", str(stats.failed))
    table.add_row("[bold]total[/bold]", f"[bold]{stats.total}[/bold]")
    console.print(table)


@queue_app.command("process")
def queue_process() -> None:
    """Claim and run one render job in this process."""
    from vidgen_engine.db.session import get_session_context
    from vidgen_engine.services.queue_worker import build_queue_worker
    from vidgen_engine.utils import run_async

    with get_session_context() as session:
        result = run_async(build_queue_worker(session).process_next())

    if result.status == "idle":
        console.print("[dim]No render job is due.[/dim]")
        return

    color = "green" if result.success else "red"
    console.print(f"[bold {color}]Job {result.job_id}: {result.status}[/bold {color}]")
    if result.output_url:
        console.print(f"[cyan]Output:[/cyan] {result.output_url}")
    if result.processing_seconds is not None:
        console.print(f"[cyan]Processing time:[/cyan] {result.processing_seconds:.1f}s")
    if result.error:
        console.print(f"[red]Error:[/red] {result.error}")
    if not result.success:
        raise typer.Exit(code=1)


@queue_app.command("reap")
def queue_reap() -> None:
    """Fail jobs whose final lease expired."""
    from vidgen_engine.db.session import get_session_context
    from vidgen_engine.services.queue_worker import build_queue_worker
    from vidgen_engine.utils import run_async

    with get_session_context() as session:
        reaped = run_async(build_queue_worker(session).reap_expired())

    console.print(f"Reaped {len(reaped)} job(s)")
    for job_id in reaped:
        console.print(f"[dim]  {job_id}[/dim]")


@queue_app.command("retry")
def queue_retry(
    job_id: str = typer.Argument(..., help="Render job ID (UUID)"),
    reset: bool = typer.Option(False, "--reset", help="Restore a full attempt budget"),
) -> None:
    """Make a failed render job claimable again."""
    from vidgen_engine.db.session import get_session_context
    from vidgen_engine.domain.errors import VidGenError
    from vidgen_engine.services.job_retry import retry_render_job

    job_uuid = parse_uuid(job_id, "job ID")

    with get_session_context() as session:
        try:
            job, project = retry_render_job(session, job_uuid, reset_attempts=reset)
        except VidGenError as e:
            console.print(f"[bold red]{e}[/bold red]")
            if not reset:
                console.print("[dim]Use --reset to retry an exhausted job.[/dim]")
            raise typer.Exit(code=1)

        console.print(
            f"[bold green]Job {job.id} is {job.status} "
            f"({job.attempts}/{job.max_attempts} attempts)[/bold green]"
        )
        console.print(f"[dim]Project {project.id} is {project.status}[/dim]")


# =============================================================================
# WEBHOOK COMMANDS
# =============================================================================


@webhooks_app.command("sweep")
def webhooks_sweep(
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Maximum deliveries to retry"),
) -> None:
    """Retry failed webhook deliveries that are due."""
    from vidgen_engine.db.session import get_session_context
    from vidgen_engine.services.webhooks import WebhookDispatcher
    from vidgen_engine.utils import run_async

    with get_session_context() as session:
        result = run_async(WebhookDispatcher(session).sweep(limit))

    console.print(
        f"Claimed {result.claimed}, delivered [green]{result.delivered}[/green], "
        f"failed [red]{result.failed}[/red]"
    )


if __name__ == "__main__":
    app()
