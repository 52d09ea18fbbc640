# Status command - one-shot job status lookup

import typer
import httpx
from typing import Optional
from rich.console import Console
from rich.table import Table

console = Console()

STATUS_STYLES = {
    "pending": "[yellow]pending[/yellow]",
    "complete": "[green]complete[/green]",
    "failed": "[red]failed[/red]",
    "not_found": "[dim]not found[/dim]",
}


def show_job_status(job_id: str, server_url: str, client: Optional[httpx.Client] = None) -> dict:
    """
    Print a job's current status.

    A complete job is only reported once by the server, so the download URL
    shown here will not be available from a second lookup.
    """
    owns_client = client is None
    client = client or httpx.Client(timeout=10.0)

    try:
        response = client.get(f"{server_url}/api/status/{job_id}")
        if response.status_code not in (200, 404):
            response.raise_for_status()
        data = response.json()
    except httpx.TimeoutException:
        console.print("[red]Error: Request timed out[/red]")
        raise typer.Exit(1)
    except httpx.ConnectError:
        console.print(f"[red]Error: Cannot connect to server at {server_url}[/red]")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        console.print(f"[red]Error: Server returned {e.response.status_code}[/red]")
        raise typer.Exit(1)
    finally:
        if owns_client:
            client.close()

    status = data.get("status", "unknown")
    table = Table(show_header=False, box=None)
    table.add_row("Job", f"[cyan]{job_id}[/cyan]")
    table.add_row("Status", STATUS_STYLES.get(status, status))
    if data.get("url"):
        table.add_row("Video", f"{server_url}{data['url']}")
    if data.get("error") and status == "failed":
        table.add_row("Error", f"[red]{data['error']}[/red]")
    console.print(table)

    return data
