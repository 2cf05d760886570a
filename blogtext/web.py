"""Blogtext web API - FastAPI backend."""

import json
import uuid
from dataclasses import asdict
from datetime import datetime, timedelta

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query
from fastapi.responses import Response, StreamingResponse
from pydantic import BaseModel

from .cancel import CancelToken
from .config import ScrapeConfig
from .errors import InvalidInput
from .exporters import to_csv, to_json
from .models import Completed, ExtractedPost, Failed, Post, ScrapeRequest, Status
from .pipeline import Scraper
from .selection import SortOrder, select_posts
from .validation import normalize_url, validate_request

# Configuration
JOB_EXPIRY_HOURS = 1

app = FastAPI(title="Blogtext", description="Extract the full text of every post on a blog")

# In-memory job tracking
jobs: dict[str, dict] = {}


class ScrapeJobRequest(BaseModel):
    url: str
    limit: int | None = None


class JobStatus(BaseModel):
    status: str  # "processing", "complete", "error", "cancelled"
    progress: str | None = None
    error: str | None = None
    posts: int = 0
    warnings: list[str] = []


def get_scraper() -> Scraper:
    """Dependency returning the scraper used by every job."""
    return Scraper(config=ScrapeConfig.from_env())


def event_to_dict(event) -> dict:
    """JSON-friendly representation of an event or outcome."""
    if isinstance(event, Status):
        return {"type": "status", "message": event.message, "level": event.level}
    if isinstance(event, Post):
        return {"type": "post", "data": event.data.to_dict()}
    if isinstance(event, Completed):
        return {"type": "completed", **asdict(event)}
    if isinstance(event, Failed):
        return {"type": "failed", "error": str(event.error)}
    raise TypeError(f"Unknown event {event!r}")


def build_request(url: str, limit: int | None) -> ScrapeRequest:
    """Normalize and validate user input, mapping ``InvalidInput`` to HTTP 400."""
    try:
        return validate_request(ScrapeRequest(base_url=normalize_url(url), limit=limit))
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))


def cleanup_old_jobs():
    """Remove finished jobs older than JOB_EXPIRY_HOURS."""
    cutoff = datetime.now() - timedelta(hours=JOB_EXPIRY_HOURS)
    to_remove = [
        job_id for job_id, job in jobs.items()
        if job["status"] != "processing" and job["created_at"] < cutoff
    ]
    for job_id in to_remove:
        del jobs[job_id]


async def process_blog(job_id: str, request: ScrapeRequest, scraper: Scraper):
    """Background task running one scrape and recording its events."""
    job = jobs[job_id]

    async def sink(event) -> None:
        if isinstance(event, Status):
            job["progress"] = event.message
            if event.is_warning:
                job["warnings"].append(event.message)
        elif isinstance(event, Post):
            job["posts"].append(event.data)
        elif isinstance(event, Failed):
            job["status"] = "error"
            job["error"] = str(event.error)
            job["progress"] = None
        elif isinstance(event, Completed):
            job["status"] = "cancelled" if event.cancelled else "complete"

    await scraper.run(request, sink, job["cancel"])


def get_job(job_id: str) -> dict:
    if job_id not in jobs:
        raise HTTPException(status_code=404, detail="Job not found")
    return jobs[job_id]


@app.post("/scrape")
async def start_scrape(
    payload: ScrapeJobRequest,
    background_tasks: BackgroundTasks,
    scraper: Scraper = Depends(get_scraper),
):
    """Start extracting a blog."""
    cleanup_old_jobs()
    request = build_request(payload.url, payload.limit)

    job_id = str(uuid.uuid4())
    jobs[job_id] = {
        "status": "processing",
        "progress": "Starting...",
        "error": None,
        "posts": [],
        "warnings": [],
        "created_at": datetime.now(),
        "url": request.base_url,
        "cancel": CancelToken(),
    }
    background_tasks.add_task(process_blog, job_id, request, scraper)
    return {"job_id": job_id}


@app.get("/status/{job_id}")
async def get_status(job_id: str) -> JobStatus:
    """Get the status of a scrape job."""
    job = get_job(job_id)
    return JobStatus(
        status=job["status"],
        progress=job.get("progress"),
        error=job.get("error"),
        posts=len(job["posts"]),
        warnings=job["warnings"],
    )


@app.get("/posts/{job_id}")
async def get_posts(
    job_id: str,
    sort: SortOrder = SortOrder.DEFAULT,
    q: str | None = None,
    count: int | None = Query(default=None, ge=1),
    format: str | None = Query(default=None, pattern="^(json|csv)$"),
):
    """List extracted posts, or download them as CSV/JSON when ``format`` is given."""
    job = get_job(job_id)
    posts: list[ExtractedPost] = select_posts(job["posts"], sort, q, count)

    if format is None:
        return {"status": job["status"], "posts": [p.to_dict() for p in posts]}

    stamp = datetime.now().strftime("%Y-%m-%d")
    if format == "csv":
        return Response(
            content=to_csv(posts),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="blog-posts-{stamp}.csv"'},
        )
    return Response(
        content=to_json(posts),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="blog-posts-{stamp}.json"'},
    )


@app.delete("/jobs/{job_id}")
async def cancel_job(job_id: str):
    """Cancel a running job; posts extracted so far stay available."""
    job = get_job(job_id)
    if job["status"] == "processing":
        job["cancel"].cancel()
    return {"job_id": job_id, "status": job["status"]}


@app.get("/stream")
async def stream_scrape(
    url: str,
    limit: int | None = None,
    scraper: Scraper = Depends(get_scraper),
):
    """Stream a scrape as newline-delimited JSON events, the outcome last."""
    request = build_request(url, limit)

    async def lines():
        async for event in scraper.stream(request):
            yield json.dumps(event_to_dict(event), ensure_ascii=False) + "\n"

    return StreamingResponse(lines(), media_type="application/x-ndjson")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
