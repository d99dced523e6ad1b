"""
Tests for Web Application API endpoints.
"""

import pytest
import json
from io import BytesIO

# Add src directory to path
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

# Try to import TestClient, skip tests if httpx is not available
try:
    from fastapi.testclient import TestClient
    from webapp.api import app
    TESTCLIENT_AVAILABLE = True
except ImportError:
    TESTCLIENT_AVAILABLE = False
    pytestmark = pytest.mark.skip(reason="httpx not installed, required for TestClient")

if TESTCLIENT_AVAILABLE:
    client = TestClient(app)


def _small_request(**overrides):
    request_data = {
        "data_params": {
            "true_theta_a": 0.3,
            "true_theta_b": 0.7,
            "num_experiments": 5,
            "flips_per_experiment": 10,
            "seed": 42
        },
        "surface_params": {
            "resolution": 10,  # Small for faster test
            "num_contours": 5,
            "plot_size": 100
        },
        "em_params": {
            "show_em_path": True,
            "em_start": [0.2, 0.8]
        },
        "renderer": "none"
    }
    request_data.update(overrides)
    return request_data


class TestHealthEndpoint:
    """Tests for /api/health endpoint."""

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_health_check(self):
        """Test health check endpoint."""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"


class TestRootEndpoint:
    """Tests for root endpoint."""

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_root(self):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "message" in data
        assert "version" in data


class TestComputeEndpoint:
    """Tests for /api/compute endpoint."""

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_compute_data_only(self):
        """Test compute endpoint without a rendered plot."""
        response = client.post("/api/compute", json=_small_request())
        assert response.status_code == 200, f"Expected 200, got {response.status_code}: {response.text}"
        data = response.json()

        assert data["success"] is True
        assert len(data["experiments"]) == 5
        for exp in data["experiments"]:
            assert exp["heads"] + exp["tails"] == 10
            assert exp["true_coin"] in ("A", "B")

        # Check surface
        surface = data["surface"]
        assert surface["resolution"] == 10
        assert len(surface["thetas"]) == 11
        assert len(surface["values"]) == 11
        assert all(len(row) == 11 for row in surface["values"])
        assert surface["min_ll"] <= surface["max_ll"]

        # Check contours
        assert len(data["contours"]) == 5
        for line in data["contours"]:
            for seg in line["segments"]:
                assert len(seg) == 4

        # Check EM
        em = data["em"]
        assert em["start"] == [0.2, 0.8]
        assert em["path"][0] == [0.2, 0.8]
        assert 2 <= len(em["path"]) <= 51
        assert em["n_iterations"] == len(em["path"]) - 1
        assert em["status"] in ("converged", "max_iter_reached")
        assert em["log_likelihood_end"] >= em["log_likelihood_start"]

        # Check execution time
        assert "total_time" in data["execution_time"]
        assert data["execution_time"]["render"] is None
        assert data["plot_data_url"] is None
        assert data["svg"] is None

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_compute_raster(self):
        """Test compute endpoint with a PNG plot."""
        response = client.post("/api/compute", json=_small_request(renderer="raster"))
        assert response.status_code == 200
        data = response.json()

        assert data["plot_data_url"].startswith("data:image/png;base64,")
        assert data["execution_time"]["render"] is not None

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_compute_svg(self):
        """Test compute endpoint with SVG markup."""
        response = client.post("/api/compute", json=_small_request(renderer="svg"))
        assert response.status_code == 200
        data = response.json()

        assert data["svg"].startswith("<svg")
        assert data["plot_data_url"] is None

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_compute_without_grid_and_contours(self):
        """Test that raw grid and contours can be left out of the response."""
        request_data = _small_request(include_grid=False, include_contours=False)
        response = client.post("/api/compute", json=request_data)
        assert response.status_code == 200
        data = response.json()

        assert data["surface"]["values"] is None
        assert data["contours"] is None

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_compute_deterministic(self):
        """Test that the same request gives the same result."""
        first = client.post("/api/compute", json=_small_request()).json()
        second = client.post("/api/compute", json=_small_request()).json()

        assert first["experiments"] == second["experiments"]
        assert first["surface"]["values"] == second["surface"]["values"]
        assert first["em"]["path"] == second["em"]["path"]

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_compute_defaults(self):
        """Test compute endpoint with an empty request body."""
        response = client.post("/api/compute", json={"renderer": "none", "include_grid": False})
        assert response.status_code == 200
        data = response.json()
        assert data["surface"]["resolution"] == 100
        assert len(data["experiments"]) == 5

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_compute_invalid_params(self):
        """Test compute endpoint with invalid parameters."""
        request_data = _small_request()
        request_data["data_params"]["true_theta_a"] = 1.5  # Invalid: must lie in (0, 1)

        response = client.post("/api/compute", json=request_data)
        assert response.status_code == 422  # Validation error

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_compute_invalid_em_start(self):
        """Test compute endpoint with a start point outside the domain."""
        request_data = _small_request()
        request_data["em_params"]["em_start"] = [0.0, 0.5]

        response = client.post("/api/compute", json=request_data)
        assert response.status_code == 422

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_compute_invalid_renderer(self):
        response = client.post("/api/compute", json=_small_request(renderer="pdf"))
        assert response.status_code == 422


class TestStartPointEndpoint:
    """Tests for /api/start-point endpoint."""

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_center_click(self):
        """Test that the plot center maps to (0.5, 0.5)."""
        response = client.post("/api/start-point", json={"x": 200, "y": 200, "plot_size": 400})
        assert response.status_code == 200
        data = response.json()
        assert data["theta_a"] == pytest.approx(0.5)
        assert data["theta_b"] == pytest.approx(0.5)

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_top_left_click(self):
        """Test that the top-left corner is low θ_A and high θ_B."""
        response = client.post("/api/start-point", json={"x": 0, "y": 0, "plot_size": 400})
        assert response.status_code == 200
        data = response.json()
        assert data["theta_a"] == pytest.approx(0.01)
        assert data["theta_b"] == pytest.approx(0.99)

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_click_outside_plot(self):
        response = client.post("/api/start-point", json={"x": 500, "y": 10, "plot_size": 400})
        assert response.status_code == 422


class TestLoadConfigEndpoint:
    """Tests for /api/load-config endpoint."""

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_load_config(self):
        """Test loading a configuration file."""
        config = {
            "true_theta_a": 0.25,
            "true_theta_b": 0.8,
            "seed": 7,
            "resolution": 50,
            "renderer": "svg"
        }
        files = {"file": ("config.json", BytesIO(json.dumps(config).encode("utf-8")), "application/json")}

        response = client.post("/api/load-config", files=files)
        assert response.status_code == 200
        data = response.json()

        assert data["data_params"]["true_theta_a"] == 0.25
        assert data["data_params"]["seed"] == 7
        assert data["data_params"]["num_experiments"] == 5  # Default
        assert data["surface_params"]["resolution"] == 50
        assert data["em_params"]["em_start"] == [0.2, 0.8]
        assert data["renderer"] == "svg"

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_load_config_invalid_json(self):
        """Test loading an invalid JSON file."""
        files = {"file": ("config.json", BytesIO(b"{ invalid json }"), "application/json")}

        response = client.post("/api/load-config", files=files)
        assert response.status_code == 400

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_load_config_list_payload(self):
        """Test that a JSON array is rejected instead of failing with 500."""
        files = {"file": ("config.json", BytesIO(b"[1, 2]"), "application/json")}

        response = client.post("/api/load-config", files=files)
        assert response.status_code == 400
        assert "JSON object" in response.json()["detail"]

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_load_config_not_utf8(self):
        """Test that a file which is not UTF-8 text is rejected."""
        files = {"file": ("config.json", BytesIO(b"\xff\xfe\x00{"), "application/json")}

        response = client.post("/api/load-config", files=files)
        assert response.status_code == 400

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_load_config_out_of_range(self):
        """Test that values outside their valid range are rejected."""
        config = {"resolution": -3, "renderer": "svg"}
        files = {"file": ("config.json", BytesIO(json.dumps(config).encode("utf-8")), "application/json")}

        response = client.post("/api/load-config", files=files)
        assert response.status_code == 400
        assert "resolution" in response.json()["detail"]

    @pytest.mark.skipif(not TESTCLIENT_AVAILABLE, reason="httpx not available")
    def test_load_config_show_em_path_string(self):
        config = {"show_em_path": "false"}
        files = {"file": ("config.json", BytesIO(json.dumps(config).encode("utf-8")), "application/json")}

        response = client.post("/api/load-config", files=files)
        assert response.status_code == 400
        assert "show_em_path" in response.json()["detail"]
