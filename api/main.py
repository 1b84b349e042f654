"""FocosBR FastAPI main application."""

from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
import uvicorn

from pipeline import __version__
from pipeline.export import ARTIFACTS, DASHBOARD_DATASET, STATISTICS_FILE
from pipeline.process.statistics import dashboard_summary

from .contracts import DashboardDetection, DetectionList, HealthResponse, Statistics, Summary
from .utils import ArtifactCache, filter_detections, get_attribution, processed_dir

load_dotenv()

# Create FastAPI app
app = FastAPI(
    title="FocosBR API",
    description="Heat spot detections across Brazil, enriched with region labels",
    version=__version__
)

# The dashboard is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

artifacts = ArtifactCache()


def _load(filename: str):
    data = artifacts.load(processed_dir() / filename)
    if data is None:
        raise HTTPException(
            status_code=404,
            detail=f"{filename} not found - run the pipeline first"
        )
    return data


@app.get("/", tags=["Root"])
async def root():
    """API root endpoint."""
    return {
        "message": "FocosBR API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "attribution": get_attribution()
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Reports whether processed data is available and how many artifacts
    are held in memory.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        data_available=(processed_dir() / DASHBOARD_DATASET).exists(),
        cached_artifacts=artifacts.status()['size'],
        version=__version__
    )


@app.get("/detections", response_model=DetectionList, tags=["Detections"])
async def list_detections(
    municipality: Optional[str] = Query(None, description="Filter by municipality name"),
    state: Optional[str] = Query(None, description="Filter by state code"),
    biome: Optional[str] = Query(None, description="Filter by biome name"),
    satellite: Optional[str] = Query(None, description="Filter by satellite"),
    limit: int = Query(1000, ge=1, le=50000, description="Page size"),
    offset: int = Query(0, ge=0, description="Page start")
):
    """
    List enriched detections from the dashboard dataset.

    Query Parameters:
    - municipality, state, biome, satellite: Optional exact-match filters
    - limit, offset: Pagination
    """
    detections = filter_detections(
        _load(DASHBOARD_DATASET),
        municipality=municipality,
        state=state,
        biome=biome,
        satellite=satellite
    )
    page = detections[offset:offset + limit]

    return DetectionList(
        detections=[DashboardDetection(**d) for d in page],
        count=len(page),
        total=len(detections)
    )


@app.get("/statistics", response_model=Statistics, tags=["Statistics"])
async def get_statistics():
    """Group-by tallies and classification counts of the last run."""
    return Statistics(**_load(STATISTICS_FILE))


@app.get("/summary", response_model=Summary, tags=["Statistics"])
async def get_summary():
    """Leader municipality and state, predominant biome and main satellite."""
    return Summary(**dashboard_summary(_load(STATISTICS_FILE)))


@app.get("/downloads/{filename}", tags=["Downloads"])
async def download_file(filename: str):
    """
    Download one of the processed JSON artifacts.

    Path Parameters:
    - filename: Artifact name
    """
    if filename not in ARTIFACTS:
        raise HTTPException(status_code=404, detail=f"Unknown artifact {filename}")

    file_path = processed_dir() / filename
    if not file_path.exists():
        raise HTTPException(status_code=404, detail=f"File {filename} not found")

    return FileResponse(
        path=file_path,
        media_type="application/json",
        filename=filename
    )


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
