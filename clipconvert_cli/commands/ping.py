# Ping command - connectivity check against /api/ping

import typer
import httpx
from typing import Optional
from rich.console import Console

console = Console()


def check_server(server_url: str, client: Optional[httpx.Client] = None) -> int:
    """Ping the server. Returns the HTTP status; exits 1 when the server cannot be reached."""
    console.print(f"[yellow]📡 Contacting {server_url}...[/yellow]")
    owns_client = client is None
    client = client or httpx.Client(timeout=5)

    try:
        r = client.get(f"{server_url}/api/ping")
    except httpx.HTTPError as e:
        console.print(f"[bold red]❌ Connection Failed:[/bold red] {e}")
        raise typer.Exit(1)
    finally:
        if owns_client:
            client.close()

    if r.status_code == 200:
        console.print("[bold green]🏓 PONG![/bold green] Server is alive.")
    else:
        console.print(f"[yellow]⚠️ Server responded with status: {r.status_code}[/yellow]")
    return r.status_code
