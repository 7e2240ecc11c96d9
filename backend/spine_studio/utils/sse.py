import json
from typing import Any


def sse_event(event: str, data: Any) -> str:
    payload = json.dumps(data, default=str) if not isinstance(data, str) else data
    return f"event: {event}\ndata: {payload}\n\n"


def sse_stage_change(stage: str) -> str:
    return sse_event("stage_change", {"stage": stage})


def sse_classification(classification: dict) -> str:
    return sse_event("classification", classification)


def sse_result(result: dict) -> str:
    return sse_event("result", result)


def sse_error(message: str) -> str:
    return sse_event("error", {"message": message})


def sse_done(timestamp: str | None = None) -> str:
    return sse_event("done", {"timestamp": timestamp})
