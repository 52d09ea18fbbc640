import os
import typer
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv

# Load the .env.client next to this package, if present
env_path = Path(__file__).parent / '.env.client'
load_dotenv(env_path)

# Creating the main Typer instance
app = typer.Typer(help="ClipConvert CLI", no_args_is_help=True)

DEFAULT_SERVER_URL = "http://localhost:3000"


def get_server_url() -> str:
    return os.getenv("CLIPCONVERT_SERVER_URL", DEFAULT_SERVER_URL).rstrip("/")


from .commands.convert import convert_file
from .commands.ping import check_server
from .commands.status import show_job_status


@app.command()
def ping():
    """Connectivity check to the ClipConvert server."""
    check_server(get_server_url())


@app.command()
def convert(
    file_path: str = typer.Argument(..., help="Path to the video clip to convert"),
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Wait for the conversion and download the result"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Where to save the MP4 (defaults to the job id)"),
    interval: float = typer.Option(2.0, "--interval", "-i", help="Seconds between status polls"),
):
    """
    Upload a clip and convert it to a web-playable MP4.
    """
    convert_file(file_path, get_server_url(), wait=wait, output_path=output, interval=interval)


@app.command()
def status(
    job_id: str = typer.Argument(..., help="Job id returned by 'convert'")
):
    """
    Check the status of a conversion job.

    Note: a finished job is reported once, then forgotten by the server.
    """
    show_job_status(job_id, get_server_url())


# Adding a callback ensures the 'Commands' section is generated
@app.callback()
def main():
    """
    ClipConvert CLI: convert clips to MP4 on a ClipConvert server.
    """
    pass


if __name__ == "__main__":
    app()
