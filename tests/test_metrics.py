from fastapi.testclient import TestClient

from sheets_mcp.metrics import MAX_RECENT_DURATIONS, MetricsRecorder, default_metrics
from sheets_mcp.server import app


def test_duration_window_keeps_latest_requests():
    recorder = MetricsRecorder(max_recent=5)
    for i in range(20):
        recorder.record_duration(f"req-{i}", float(i))
    durations = recorder.snapshot()["recent_request_durations_ms"]
    assert list(durations) == [f"req-{i}" for i in range(15, 20)]
    assert durations["req-19"] == 19.0


def test_request_durations_are_bounded_over_http():
    client = TestClient(app)
    for _ in range(MAX_RECENT_DURATIONS + 25):
        client.get("/health")
    snapshot = default_metrics.snapshot()
    assert snapshot["requests"] == MAX_RECENT_DURATIONS + 25
    assert len(snapshot["recent_request_durations_ms"]) == MAX_RECENT_DURATIONS


def test_tool_counts_and_reset():
    recorder = MetricsRecorder()
    recorder.record_tool("read_range", success=True)
    recorder.record_tool("read_range", success=True)
    recorder.record_tool("write_range", success=False)
    recorder.record_rpc_error(-32601)
    snapshot = recorder.snapshot()
    assert snapshot["tool_success"] == {"read_range": 2}
    assert snapshot["tool_error"] == {"write_range": 1}
    assert snapshot["rpc_errors"] == {"-32601": 1}

    recorder.reset()
    assert recorder.snapshot() == {
        "requests": 0,
        "rpc_errors": {},
        "tool_success": {},
        "tool_error": {},
        "recent_request_durations_ms": {},
    }
