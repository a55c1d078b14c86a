import json
import logging
import time
import uuid

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from semver_next.config import load_settings
from semver_next.engine import NextOptions, check_pull_request, compute_next
from semver_next.errors import (
    InvalidInput,
    NotFound,
    PolicyViolation,
    SemverNextError,
    TransportError,
    ValidationError,
)
from semver_next.github_client import GitHubAPI, GitHubClient
from semver_next.logs import setup_logging
from semver_next.models import Result
from semver_next.verify import verify_github

SET = load_settings()
setup_logging(SET.log_level, default=logging.INFO, structured=SET.structured_logging)
logger = logging.getLogger("semver_next.service")

app = FastAPI(title="semver-next", version="0.1.0")

try:  # optional prometheus_client
    from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
except Exception:  # pragma: no cover
    Counter = None  # type: ignore
    Histogram = None  # type: ignore

if Counter:  # pragma: no cover (metrics wiring itself not critical)
    try:
        METRIC_HOOKS = Counter(
            "semver_next_hooks_total", "GitHub webhook deliveries", ["event", "outcome"]
        )
        METRIC_LATENCY = Histogram(
            "semver_next_request_latency_seconds",
            "Latency of request processing",
            buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10),
            labelnames=("route",),
        )
    except ValueError:
        # Already registered (e.g., module reload in tests)
        METRIC_HOOKS = None
        METRIC_LATENCY = None
else:
    METRIC_HOOKS = None
    METRIC_LATENCY = None

PULL_ACTIONS = {"opened", "edited", "labeled", "unlabeled", "synchronize", "reopened"}

ERROR_STATUS = [
    (InvalidInput, 400),
    (NotFound, 404),
    (ValidationError, 422),
    (PolicyViolation, 409),
    (TransportError, 502),
]


@app.middleware("http")
async def request_id_middleware(request, call_next):  # type: ignore
    req_id = str(uuid.uuid4())
    request.state.request_id = req_id
    start = time.time()
    resp = await call_next(request)
    duration = time.time() - start
    if METRIC_LATENCY:
        route = request.url.path.split("/")[1] or "root"
        METRIC_LATENCY.labels(route=route).observe(duration)
    resp.headers["X-Request-ID"] = req_id
    return resp


@app.exception_handler(SemverNextError)
async def semver_next_error_handler(request: Request, exc: SemverNextError):
    status = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 500)
    body = exc.to_dict()
    if isinstance(exc, PolicyViolation):
        body["result"] = exc.result.model_dump(mode="json")
    return JSONResponse(body, status_code=status)


def get_github() -> GitHubAPI:
    return GitHubClient(token=SET.github_token, base_url=SET.github_api_url, timeout=SET.http_timeout)


def require_auth(request: Request):
    if SET.auth_token:
        auth = request.headers.get("Authorization")
        if not auth or auth != f"Bearer {SET.auth_token}":
            raise HTTPException(status_code=401, detail="unauthorized")
    return True


class HookResult(BaseModel):
    event: str
    verified: bool
    ok: bool = False
    reason: str | None = None
    repo: str | None = None
    number: int | None = None
    change_level: str | None = None
    request_id: str | None = None


@app.get("/healthz")
def healthz():
    return {
        "ok": True,
        "github_token": bool(SET.github_token),
        "webhook_secret": bool(SET.webhook_secret),
    }


@app.get("/readyz")
def readyz():
    return {"ok": bool(SET.github_token)}


@app.get("/repos/{owner}/{name}/next", response_model=Result)
async def repo_next_version(
    owner: str,
    name: str,
    head: str,
    base: str = "",
    prev_version: str = "",
    min_bump: str = "",
    max_bump: str = "",
    _: bool = Depends(require_auth),
    gh: GitHubAPI = Depends(get_github),
):
    opts = NextOptions(
        repo=f"{owner}/{name}",
        head=head,
        base=base,
        prev_version=prev_version,
        min_bump=min_bump,
        max_bump=max_bump,
    )
    return await compute_next(gh, opts)


async def _handle_hook(
    event: str, body: bytes, headers: dict[str, str], gh: GitHubAPI, request_id: str
) -> tuple[HookResult, int]:
    result = HookResult(event=event, verified=False, request_id=request_id)
    if not SET.webhook_secret:
        result.reason = "webhook_secret_not_set"
        return result, 400
    verified, reason = verify_github(SET.webhook_secret, headers.get("x-hub-signature-256", ""), body)
    result.verified = verified
    if not verified:
        result.reason = reason
        return result, 400

    # only parse after verification succeeds
    try:
        payload = json.loads(body.decode("utf-8"))
    except ValueError:
        result.reason = "invalid_json"
        return result, 400
    if event == "ping":
        result.ok, result.reason = True, "pong"
        return result, 200
    if event != "pull_request" or payload.get("action") not in PULL_ACTIONS:
        result.ok, result.reason = True, "ignored"
        return result, 200

    result.repo = (payload.get("repository") or {}).get("full_name")
    result.number = (payload.get("pull_request") or {}).get("number") or payload.get("number")
    if not result.repo or not result.number:
        result.reason = "missing_pull_request"
        return result, 400
    try:
        level = await check_pull_request(gh, result.repo, result.number)
    except ValidationError as e:
        result.reason = e.message
        return result, 422
    except TransportError as e:
        result.reason = f"github_error:{e.message}"
        return result, 502
    except SemverNextError as e:
        # pull gone, wrong repository, malformed full_name
        result.reason = f"{e.code.lower()}:{e.message}"
        return result, next((code for cls, code in ERROR_STATUS if isinstance(e, cls)), 500)
    result.ok = True
    result.change_level = str(level)
    return result, 200


@app.post("/hooks/github")
async def receive(request: Request, gh: GitHubAPI = Depends(get_github)):
    headers = {k.lower(): v for k, v in request.headers.items()}
    body = await request.body()
    event = headers.get("x-github-event", "unknown")
    res, code = await _handle_hook(event, body, headers, gh, getattr(request.state, "request_id", "na"))
    if METRIC_HOOKS:
        METRIC_HOOKS.labels(event=event, outcome="ok" if res.ok else "rejected").inc()
    if SET.structured_logging:
        entry = res.model_dump(exclude={"event"})
        logger.info(json.dumps({"event": "webhook_result", "github_event": event, **entry, "status_code": code}))
    return Response(content=res.model_dump_json(), media_type="application/json", status_code=code)


@app.get("/metrics")
def metrics():  # pragma: no cover
    if not Counter:
        return Response(status_code=404, content="prometheus_client not installed")
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def main():
    # Convenience CLI entrypoint: `semver-next-service`
    import os

    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8787"))
    uvicorn.run("services.semver_next.main:app", host=host, port=port, reload=False)
