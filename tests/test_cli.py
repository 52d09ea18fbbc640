import httpx
import pytest
import typer

from clipconvert_cli.commands.convert import convert_file, wait_for_job
from clipconvert_cli.commands.ping import check_server
from clipconvert_cli.commands.status import show_job_status

SERVER = "http://clipconvert.test"
JOB_ID = "video_1718000000123_1.mp4"


def _mock_server(statuses, video=b"mp4-bytes"):
    """Serve /api/convert, a scripted sequence of status replies (dicts or raw responses), and the finished video."""
    replies = iter(statuses)
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        if request.method == "POST" and request.url.path == "/api/convert":
            return httpx.Response(202, json={"success": True, "job_id": JOB_ID, "status": "pending"})
        if request.url.path == f"/api/status/{JOB_ID}":
            payload = next(replies)
            if isinstance(payload, httpx.Response):
                return payload
            return httpx.Response(404 if payload["status"] == "not_found" else 200, json=payload)
        if request.url.path == f"/videos/{JOB_ID}":
            return httpx.Response(200, content=video)
        return httpx.Response(404, json={"detail": "Not Found"})

    return httpx.Client(transport=httpx.MockTransport(handler)), seen


@pytest.fixture
def clip(tmp_path):
    path = tmp_path / "clip.webm"
    path.write_bytes(b"webm")
    return path


def test_convert_waits_and_downloads(clip, tmp_path):
    client, seen = _mock_server([
        {"status": "pending"},
        {"status": "pending"},
        {"status": "complete", "url": f"/videos/{JOB_ID}"},
    ])
    output = tmp_path / "out.mp4"

    job_id = convert_file(str(clip), SERVER, wait=True, output_path=str(output), interval=0, client=client)

    assert job_id == JOB_ID
    assert output.read_bytes() == b"mp4-bytes"
    assert seen.count(("GET", f"/api/status/{JOB_ID}")) == 3


def test_convert_without_wait_only_uploads(clip):
    client, seen = _mock_server([])

    job_id = convert_file(str(clip), SERVER, wait=False, client=client)

    assert job_id == JOB_ID
    assert seen == [("POST", "/api/convert")]


def test_convert_exits_nonzero_on_failed_job(clip):
    client, _ = _mock_server([{"status": "failed", "error": "FFmpeg failed with code 1"}])

    with pytest.raises(typer.Exit):
        convert_file(str(clip), SERVER, interval=0, client=client)


def test_convert_rejects_missing_file(tmp_path):
    with pytest.raises(typer.Exit):
        convert_file(str(tmp_path / "nope.webm"), SERVER)


def test_wait_for_job_times_out():
    client, _ = _mock_server([{"status": "pending"}] * 100)

    with pytest.raises(TimeoutError):
        wait_for_job(client, SERVER, JOB_ID, interval=0.01, timeout=0.05)


def test_status_command_returns_server_payload():
    client, _ = _mock_server([{"job_id": JOB_ID, "status": "not_found", "error": "Unknown job"}])

    data = show_job_status(JOB_ID, SERVER, client=client)

    assert data["status"] == "not_found"


def test_convert_exits_nonzero_when_status_endpoint_errors(clip, tmp_path):
    client, seen = _mock_server([httpx.Response(503, text="Service Unavailable")])

    with pytest.raises(typer.Exit):
        convert_file(str(clip), SERVER, output_path=str(tmp_path / "out.mp4"), interval=0, client=client)

    assert seen.count(("GET", f"/api/status/{JOB_ID}")) == 1
    assert not (tmp_path / "out.mp4").exists()


def test_wait_for_job_raises_on_server_error():
    client, _ = _mock_server([httpx.Response(500, text="Internal Server Error")])

    with pytest.raises(httpx.HTTPStatusError):
        wait_for_job(client, SERVER, JOB_ID, interval=0)


def test_status_command_exits_nonzero_on_server_error():
    client, _ = _mock_server([httpx.Response(502, text="Bad Gateway")])

    with pytest.raises(typer.Exit):
        show_job_status(JOB_ID, SERVER, client=client)


def test_ping_reports_live_server():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/ping"
        return httpx.Response(200, json={"status": "ok", "message": "Pong"})

    client = httpx.Client(transport=httpx.MockTransport(handler))

    assert check_server(SERVER, client=client) == 200


def test_ping_returns_unexpected_status_without_exiting():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503)))

    assert check_server(SERVER, client=client) == 503


def test_ping_exits_nonzero_when_server_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))

    with pytest.raises(typer.Exit) as exc_info:
        check_server(SERVER, client=client)

    assert exc_info.value.exit_code == 1
