from fastapi import FastAPI, File, Form, UploadFile, HTTPException, Path
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from app_state import AppShell, AnalysisInProgressError, View, ViewUnavailableError
from config import Settings
from dashboard import build_dashboard, build_history
from hotspot_map import build_overlays, render_map
from models import DroneData, InvalidSampleError
from result_store import ResultStore
from translations import SUPPORTED_LANGUAGES, labels_for
from water_analyzer import AnalysisError, WaterAnalyzer
import logging
from typing import Any, Dict, Optional

settings = Settings.from_env()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "AI Analysis failed. Check internet connection."

# Initialize FastAPI app
app = FastAPI(
    title="AquaScan",
    description="Water sample safety assessment with history and regional hotspot map",
    version="1.0.0"
)

# Add CORS middleware for web client integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Application shell (lazy initialization)
shell: Optional[AppShell] = None


def get_shell() -> AppShell:
    """Get or initialize the AppShell and restore saved history."""
    global shell
    if shell is None:
        analyzer = None
        if settings.gemini_api_key:
            analyzer = WaterAnalyzer(
                api_key=settings.gemini_api_key,
                model_name=settings.model_name,
                timeout=settings.model_timeout,
            )
        else:
            logger.warning("GEMINI_API_KEY not set, analysis will be disabled")

        shell = AppShell(
            analyzer=analyzer,
            store=ResultStore(settings.data_dir),
            geolocation=settings.geolocation(),
            language=settings.language,
        )
        shell.start()
        logger.info("AppShell initialized")
    return shell


def state_payload(app_shell: AppShell) -> Dict[str, Any]:
    state = app_shell.state
    return {
        "view": state.view.value,
        "language": state.language,
        "languages": list(SUPPORTED_LANGUAGES),
        "isAnalyzing": state.is_analyzing,
        "hasResult": state.dashboard_available,
        "navigation": app_shell.navigation(),
        "labels": labels_for(state.language),
    }


def dashboard_payload(app_shell: AppShell) -> Dict[str, Any]:
    state = app_shell.state
    if state.current_result is None:
        raise HTTPException(status_code=409, detail="No analysis result to show yet")
    return build_dashboard(state.current_result, state.history)


class LanguageRequest(BaseModel):
    language: str


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    app_shell = get_shell()
    return {
        "status": "ok",
        "model": settings.model_name,
        "stored_analyses": len(app_shell.state.history)
    }


@app.get("/state")
async def get_state():
    """Current view, language and navigation."""
    return state_payload(get_shell())


@app.post("/analyze")
async def analyze_sample(
    file: Optional[UploadFile] = File(None),
    ph: Optional[float] = Form(None),
    tds: Optional[float] = Form(None),
    turbidity: Optional[str] = Form(None),
    chlorine: Optional[float] = Form(None),
    language: Optional[str] = Form(None),
):
    """
    Analyze a water sample and store the result.

    Send either an image file or the drone readings (ph, tds, turbidity, chlorine).
    Readings left out take the input form's defaults.

    Returns:
        JSON response with the dashboard view of the new result:
        {
            "status": "success",
            "dashboard": {...},
            "state": {...}
        }

    Raises:
        400: If the sample is malformed or the language is unsupported
        409: If another analysis is in progress
        502: If the model call fails
    """
    app_shell = get_shell()

    if app_shell.analyzer is None:
        raise HTTPException(
            status_code=500,
            detail="GEMINI_API_KEY environment variable not set"
        )

    image_bytes = None
    if file is not None:
        if not file.content_type or not file.content_type.startswith("image/"):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid file type: {file.content_type}. Expected an image file."
            )
        image_bytes = await file.read()
        if len(image_bytes) == 0:
            raise HTTPException(status_code=400, detail="Empty file uploaded")

    drone_data = None
    if any(value is not None for value in (ph, tds, turbidity, chlorine)):
        defaults = DroneData()
        drone_data = DroneData(
            ph=ph if ph is not None else defaults.ph,
            tds=tds if tds is not None else defaults.tds,
            turbidity=turbidity if turbidity is not None else defaults.turbidity,
            chlorine=chlorine if chlorine is not None else defaults.chlorine,
        )

    try:
        result = await app_shell.submit(image=image_bytes, drone_data=drone_data, language=language)
    except (InvalidSampleError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AnalysisInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except AnalysisError as e:
        logger.error(f"Analysis failed: {str(e)}")
        raise HTTPException(status_code=502, detail=ANALYSIS_FAILED_MESSAGE)
    except Exception as e:
        logger.error(f"Error processing sample: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error processing sample: {str(e)}"
        )

    logger.info(f"Analysis complete: {result.risk_level.value} ({result.score}), "
                f"{len(app_shell.state.history)} saved")

    return JSONResponse(content={
        "status": "success",
        "dashboard": dashboard_payload(app_shell),
        "state": state_payload(app_shell),
    })


@app.post("/navigate/{view}")
async def navigate(view: View = Path(..., description="scan, dashboard, history or map")):
    """Switch the current view."""
    app_shell = get_shell()
    try:
        app_shell.navigate(view)
    except ViewUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return state_payload(app_shell)


@app.get("/dashboard")
async def get_dashboard():
    """Dashboard view of the current result."""
    return dashboard_payload(get_shell())


@app.get("/history")
async def get_history():
    """Saved results, newest first."""
    return build_history(get_shell().state.history)


@app.post("/history/{index}/select")
async def select_history(index: int = Path(..., description="Position in history, 0 is newest")):
    """Open a saved result on the dashboard. History is not modified."""
    app_shell = get_shell()
    try:
        app_shell.select_history(index)
    except IndexError:
        raise HTTPException(
            status_code=404,
            detail=f"History entry {index} not found"
        )
    return {
        "dashboard": dashboard_payload(app_shell),
        "state": state_payload(app_shell),
    }


@app.get("/map", response_class=HTMLResponse)
async def get_map():
    """Rendered map of located samples and regional hotspots."""
    app_shell = get_shell()
    return HTMLResponse(content=render_map(app_shell.state.history, app_shell.hotspots).get_root().render())


@app.get("/map/data")
async def get_map_data():
    """Map overlays as JSON."""
    app_shell = get_shell()
    return build_overlays(app_shell.state.history, app_shell.hotspots)


@app.post("/language")
async def set_language(request: LanguageRequest):
    """Change UI labels and the requested output language."""
    app_shell = get_shell()
    try:
        app_shell.set_language(request.language)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return state_payload(app_shell)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
