"""
Pydantic models for API request/response.
"""

from typing import Optional, List, Literal
from pydantic import BaseModel, Field, field_validator, model_validator


class DataParams(BaseModel):
    """Parameters for synthetic experiment generation."""
    true_theta_a: float = Field(default=0.3, gt=0, lt=1, description="True head probability of coin A")
    true_theta_b: float = Field(default=0.7, gt=0, lt=1, description="True head probability of coin B")
    num_experiments: int = Field(default=5, gt=0, le=1000, description="Number of experiments")
    flips_per_experiment: int = Field(default=10, gt=0, le=1000, description="Flips per experiment")
    seed: int = Field(default=42, description="Random seed")


class SurfaceParams(BaseModel):
    """Parameters for the likelihood grid and its contours."""
    resolution: int = Field(default=100, gt=0, le=400, description="Grid steps per axis")
    num_contours: int = Field(default=50, gt=0, le=200, description="Number of contour levels")
    plot_size: float = Field(default=400, gt=0, le=2000, description="Plot side length in output units")


class EMParams(BaseModel):
    """Parameters specific to the EM run."""
    show_em_path: bool = Field(default=True, description="Draw the EM path in the plot")
    em_start: List[float] = Field(default=[0.2, 0.8], min_length=2, max_length=2, description="Start point [θ_A, θ_B]")

    @field_validator('em_start')
    @classmethod
    def validate_em_start(cls, v):
        if not all(0.0 < theta < 1.0 for theta in v):
            raise ValueError("em_start values must lie in the open interval (0, 1)")
        return v


class ComputeRequest(BaseModel):
    """Request model for the surface computation."""
    data_params: DataParams = Field(default_factory=DataParams)
    surface_params: SurfaceParams = Field(default_factory=SurfaceParams)
    em_params: EMParams = Field(default_factory=EMParams)
    renderer: Literal["raster", "svg", "none"] = Field(default="raster", description="Plot output format")
    include_grid: bool = Field(default=True, description="Return raw grid values")
    include_contours: bool = Field(default=True, description="Return contour segments")


class ExperimentModel(BaseModel):
    """One synthetic experiment."""
    heads: int
    tails: int
    true_coin: Literal["A", "B"]


class SurfaceResult(BaseModel):
    """Log-likelihood grid."""
    resolution: int
    thetas: List[float] = Field(description="Axis coordinates shared by θ_A and θ_B")
    values: Optional[List[List[float]]] = Field(default=None, description="values[i][j] at (θ_A[i], θ_B[j])")
    min_ll: float
    max_ll: float


class ContourLine(BaseModel):
    """Segments of one contour level, each as [x1, y1, x2, y2] in plot coordinates."""
    level: float
    segments: List[List[float]]


class EMSummary(BaseModel):
    """EM trajectory and summary."""
    path: List[List[float]]
    status: Literal["converged", "max_iter_reached"]
    n_iterations: int
    start: List[float]
    end: List[float]
    log_likelihood_start: float
    log_likelihood_end: float


class ExecutionTime(BaseModel):
    """Execution time breakdown."""
    synthesis: float
    surface: float
    em: float
    contours: float
    render: Optional[float] = None
    total_time: float


class ComputeResponse(BaseModel):
    """Response model for the surface computation."""
    success: bool
    experiments: List[ExperimentModel]
    surface: SurfaceResult
    contours: Optional[List[ContourLine]] = None
    em: EMSummary
    execution_time: ExecutionTime
    message: Optional[str] = None
    plot_data_url: Optional[str] = Field(default=None, description="Base64 encoded PNG plot")
    svg: Optional[str] = Field(default=None, description="SVG markup of the plot")


class StartPointRequest(BaseModel):
    """Click position in plot coordinates (origin at the top-left corner)."""
    x: float = Field(ge=0, description="Horizontal position")
    y: float = Field(ge=0, description="Vertical position, growing downward")
    plot_size: float = Field(default=400, gt=0, description="Plot side length")

    @model_validator(mode="after")
    def validate_inside_plot(self):
        if self.x > self.plot_size or self.y > self.plot_size:
            raise ValueError("click position must lie inside the plot")
        return self


class StartPointResponse(BaseModel):
    """EM start point derived from a click."""
    theta_a: float
    theta_b: float
