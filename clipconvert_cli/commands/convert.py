# Convert command - upload a clip, poll until the server finishes, download the MP4

import os
import time
import typer
from pathlib import Path
from typing import Optional
import httpx
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

console = Console()

TERMINAL_STATUSES = ("complete", "failed", "not_found")


def upload_video(client: httpx.Client, server_url: str, file_path: Path) -> str:
    """
    POST the clip to /api/convert

    Returns:
        str: Job id issued by the server
    """
    with open(file_path, "rb") as f:
        response = client.post(
            f"{server_url}/api/convert",
            files={"video": (file_path.name, f, "application/octet-stream")},
        )

    if response.status_code == 400:
        raise ValueError(response.json().get("detail", "Bad request"))
    response.raise_for_status()
    return response.json()["job_id"]


def wait_for_job(
    client: httpx.Client,
    server_url: str,
    job_id: str,
    interval: float = 2.0,
    timeout: Optional[float] = None,
) -> dict:
    """
    Poll /api/status/{job_id} until a terminal status comes back

    The first complete response is the only one the server will ever send
    for this job, so it is returned as-is for the caller to act on.
    """
    started = time.monotonic()
    while True:
        response = client.get(f"{server_url}/api/status/{job_id}")
        # 404 carries the not_found payload; anything else non-200 is a server fault
        if response.status_code not in (200, 404):
            response.raise_for_status()
        data = response.json()
        if data.get("status") in TERMINAL_STATUSES:
            return data
        if timeout is not None and time.monotonic() - started > timeout:
            raise TimeoutError(f"Job {job_id} still pending after {timeout:.0f}s")
        time.sleep(interval)


def download_video(client: httpx.Client, server_url: str, url: str, output_file: Path) -> int:
    """Stream the finished video to output_file. Returns bytes written."""
    written = 0
    with client.stream("GET", f"{server_url}{url}") as response:
        response.raise_for_status()
        with open(output_file, "wb") as f:
            for chunk in response.iter_bytes(chunk_size=1024 * 1024):
                f.write(chunk)
                written += len(chunk)
    return written


def convert_file(
    file_path: str,
    server_url: str,
    wait: bool = True,
    output_path: Optional[str] = None,
    interval: float = 2.0,
    client: Optional[httpx.Client] = None,
):
    """
    Upload FILE_PATH for conversion and optionally wait for and download the result
    """
    source = Path(file_path)
    if not source.is_file():
        console.print(f"[red]❌ File not found: {file_path}[/red]")
        raise typer.Exit(1)

    console.print(f"[blue]📤 Uploading:[/blue] {source.name} ({os.path.getsize(source):,} bytes)")

    # Long timeout: uploads on slow links, and the download of a large result
    owns_client = client is None
    client = client or httpx.Client(timeout=httpx.Timeout(600.0, connect=30.0))

    try:
        job_id = upload_video(client, server_url, source)
        console.print(f"[green]✅ Conversion started[/green] - job [cyan]{job_id}[/cyan]")

        if not wait:
            console.print(f"[dim]Use 'clipconvert status {job_id}' to check progress[/dim]")
            return job_id

        with Progress(SpinnerColumn(), TextColumn("{task.description}"), TimeElapsedColumn(), console=console) as progress:
            progress.add_task(f"[cyan]Converting {job_id}...", total=None)
            result = wait_for_job(client, server_url, job_id, interval=interval)

        status = result["status"]
        if status == "failed":
            console.print(f"[red]❌ Conversion failed: {result.get('error', 'unknown error')}[/red]")
            raise typer.Exit(1)
        if status == "not_found":
            console.print(f"[red]❌ Server no longer knows job {job_id}[/red]")
            raise typer.Exit(1)

        output_file = Path(output_path) if output_path else Path.cwd() / job_id
        size = download_video(client, server_url, result["url"], output_file)
        console.print(f"[green]🎬 Saved {output_file} ({size:,} bytes)[/green]")
        return job_id

    except typer.Exit:
        raise
    except ValueError as e:
        console.print(f"[red]❌ Rejected by server: {e}[/red]")
        raise typer.Exit(1)
    except httpx.TimeoutException:
        console.print("[red]❌ Request timed out[/red]")
        raise typer.Exit(1)
    except httpx.ConnectError:
        console.print(f"[red]❌ Cannot connect to server at {server_url}[/red]")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        console.print(f"[red]❌ Server returned {e.response.status_code}[/red]")
        raise typer.Exit(1)
    finally:
        if owns_client:
            client.close()
