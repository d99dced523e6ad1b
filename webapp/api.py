"""
FastAPI application for the two-coin EM surface explorer.
"""

import sys
import os
import time
import base64
import json
import logging
from typing import Dict, Any
from fastapi import FastAPI, HTTPException, UploadFile, File
from fastapi.middleware.cors import CORSMiddleware

# Add src directory to path to import coin_em package
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from coin_em import (
    ConfigError,
    apply_defaults,
    validate_config,
    build_scene,
    get_renderer,
    log_likelihood,
    plot_to_theta,
    SurfaceScene,
)
from webapp.models import (
    ComputeRequest,
    ComputeResponse,
    ContourLine,
    EMSummary,
    ExecutionTime,
    ExperimentModel,
    StartPointRequest,
    StartPointResponse,
    SurfaceResult,
)

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

app = FastAPI(
    title="Two-Coin EM API",
    description="API for exploring the two-coin log-likelihood surface and EM convergence",
    version=API_VERSION
)

# CORS middleware for React frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # React dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def request_to_config(request: ComputeRequest) -> Dict[str, Any]:
    """Flatten a ComputeRequest into the configuration dictionary used by the CLI."""
    return apply_defaults({
        "true_theta_a": request.data_params.true_theta_a,
        "true_theta_b": request.data_params.true_theta_b,
        "num_experiments": request.data_params.num_experiments,
        "flips_per_experiment": request.data_params.flips_per_experiment,
        "seed": request.data_params.seed,
        "resolution": request.surface_params.resolution,
        "num_contours": request.surface_params.num_contours,
        "plot_size": request.surface_params.plot_size,
        "show_em_path": request.em_params.show_em_path,
        "em_start": list(request.em_params.em_start),
        "renderer": "raster" if request.renderer == "none" else request.renderer,
    })


def compute_two_coin(config_dict: Dict[str, Any]) -> SurfaceScene:
    """
    Core computation function shared with main.py.

    Raises ConfigError for out-of-range values.
    """
    validate_config(config_dict)
    return build_scene(config_dict)


def generate_plot_base64(scene: SurfaceScene) -> str:
    """Render the scene as PNG and return it as a data URL."""
    png_bytes = get_renderer("raster").render(scene)
    plot_base64 = base64.b64encode(png_bytes).decode('utf-8')
    return f"data:image/png;base64,{plot_base64}"


def build_response(scene: SurfaceScene, request: ComputeRequest) -> Dict[str, Any]:
    """Convert a computed scene into ComputeResponse fields."""
    grid = scene.grid
    em_result = scene.em_result

    surface = SurfaceResult(
        resolution=grid.resolution,
        thetas=grid.thetas.tolist(),
        values=grid.values.tolist() if request.include_grid else None,
        min_ll=grid.min_ll,
        max_ll=grid.max_ll,
    )

    contours = None
    if request.include_contours:
        contours = [
            ContourLine(level=level, segments=[list(seg) for seg in segments])
            for level, segments in scene.contours.items()
        ]

    em = EMSummary(
        path=[list(point) for point in em_result.path],
        status=em_result.status.value,
        n_iterations=em_result.n_iterations,
        start=list(em_result.start),
        end=list(em_result.final),
        log_likelihood_start=log_likelihood(*em_result.start, scene.experiments),
        log_likelihood_end=log_likelihood(*em_result.final, scene.experiments),
    )

    return {
        "experiments": [
            ExperimentModel(heads=exp.heads, tails=exp.tails, true_coin=exp.true_coin)
            for exp in scene.experiments
        ],
        "surface": surface,
        "contours": contours,
        "em": em,
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Two-Coin EM API", "version": API_VERSION}


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/api/load-config")
async def load_config_file(file: UploadFile = File(...)):
    """
    Load configuration from JSON file and convert to ComputeRequest format.

    Malformed files and out-of-range values are rejected with 400.
    """
    content = await file.read()
    try:
        raw_config = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON file: {str(e)}")

    if not isinstance(raw_config, dict):
        raise HTTPException(
            status_code=400,
            detail=f"Configuration must be a JSON object, got {type(raw_config).__name__}"
        )

    try:
        config = validate_config(apply_defaults(raw_config))
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "data_params": {
            "true_theta_a": config["true_theta_a"],
            "true_theta_b": config["true_theta_b"],
            "num_experiments": config["num_experiments"],
            "flips_per_experiment": config["flips_per_experiment"],
            "seed": config["seed"],
        },
        "surface_params": {
            "resolution": config["resolution"],
            "num_contours": config["num_contours"],
            "plot_size": config["plot_size"],
        },
        "em_params": {
            "show_em_path": config["show_em_path"],
            "em_start": config["em_start"],
        },
        "renderer": config["renderer"],
    }


@app.post("/api/start-point", response_model=StartPointResponse)
async def start_point(request: StartPointRequest):
    """Convert a click on the plot into an EM start point."""
    theta_a, theta_b = plot_to_theta(request.x, request.y, request.plot_size)
    return StartPointResponse(theta_a=theta_a, theta_b=theta_b)


@app.post("/api/compute", response_model=ComputeResponse)
async def compute_surface(request: ComputeRequest):
    """
    Main computation endpoint: experiments, surface, contours and EM path.
    """
    try:
        total_start_time = time.time()
        config_dict = request_to_config(request)
        scene = compute_two_coin(config_dict)

        plot_data_url = None
        svg = None
        render_time = None
        if request.renderer != "none":
            render_start_time = time.time()
            if request.renderer == "raster":
                plot_data_url = generate_plot_base64(scene)
            else:
                svg = get_renderer("svg").render_markup(scene)
            render_time = time.time() - render_start_time

        return ComputeResponse(
            success=True,
            execution_time=ExecutionTime(
                render=render_time,
                total_time=time.time() - total_start_time,
                **scene.timings,
            ),
            plot_data_url=plot_data_url,
            svg=svg,
            **build_response(scene, request),
        )

    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Surface computation failed")
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
