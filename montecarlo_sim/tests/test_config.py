"""Tests for request, settings and response models."""

import logging

from pydantic import ValidationError
import pytest

from montecarlo_sim._warnings import ConfigurationWarning
from montecarlo_sim.config import (
    DataPointResult,
    DistributionConfig,
    LoggingConfig,
    PercentileSeries,
    PercentileSpec,
    SettingsOverride,
    SimulationInfo,
    SimulationRequest,
    SimulationResponse,
    SimulationSettings,
)


class TestSimulationSettings:
    """Test SimulationSettings defaults and constraints."""

    def test_defaults(self):
        settings = SimulationSettings()
        assert settings.iterations == 10000
        assert settings.years == 20
        assert settings.seed is None
        assert settings.percentile_direction == "ascending"
        assert [(p.value, p.description) for p in settings.percentiles] == [
            (50, "primary"), (75, "upper_bound"), (25, "lower_bound"),
            (10, "extreme_lower"), (90, "extreme_upper"),
        ]

    def test_camel_case_input(self):
        settings = SimulationSettings.model_validate(
            {"iterations": 200, "fitToData": [{"year": 1, "value": 2}],
             "percentileDirection": "descending"}
        )
        assert settings.fit_to_data[0].value == 2
        assert settings.percentile_direction == "descending"

    def test_seed_types(self):
        assert SimulationSettings(seed=7).seed == 7
        assert SimulationSettings(seed="run-7").seed == "run-7"

    @pytest.mark.parametrize("field,value", [("iterations", 0), ("years", -1), ("percentiles", [])])
    def test_invalid(self, field, value):
        with pytest.raises(ValidationError):
            SimulationSettings(**{field: value})

    def test_percentile_range(self):
        with pytest.raises(ValidationError):
            PercentileSpec(value=101)

    def test_low_iterations_warns(self):
        with pytest.warns(ConfigurationWarning, match="recommended minimum"):
            SimulationSettings(iterations=50)

    def test_merged(self):
        """Only fields set on the override replace the base settings."""
        base = SimulationSettings(iterations=1000, years=10, seed=1)
        merged = base.merged(SettingsOverride(years=3))
        assert (merged.iterations, merged.years, merged.seed) == (1000, 3, 1)
        assert base.merged(None) is base


class TestSimulationRequest:
    """Test request parsing and YAML round trips."""

    def test_from_dict(self, sample_request):
        request = SimulationRequest.from_dict(sample_request)
        assert [d.id for d in request.distributions] == ["yield", "cost", "price"]
        assert request.simulation_settings.seed == 42

    def test_missing_type(self):
        with pytest.raises(ValidationError):
            SimulationRequest.from_dict({"distributions": [{"parameters": {}}]})

    def test_duplicate_ids(self):
        entry = {"id": "a", "type": "Fixed", "parameters": {"value": 1}}
        with pytest.raises(ValidationError, match="Duplicate distribution id 'a'"):
            SimulationRequest.from_dict({"distributions": [entry, entry]})

    def test_distribution_config_frozen(self):
        config = DistributionConfig(type="Fixed", parameters={"value": 1})
        with pytest.raises(ValidationError):
            config.type = "Normal"

    def test_yaml_round_trip(self, tmp_path, sample_request):
        request = SimulationRequest.from_dict(sample_request)
        path = tmp_path / "nested" / "request.yaml"
        request.to_yaml(path)
        assert "simulationSettings" in path.read_text(encoding="utf-8")
        assert SimulationRequest.from_yaml(path).model_dump() == request.model_dump()

    def test_yaml_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SimulationRequest.from_yaml(tmp_path / "missing.yaml")


class TestSimulationResponse:
    """Test response serialization."""

    @pytest.fixture
    def response(self):
        series = PercentileSeries(
            name="Fixed_P50",
            percentile=PercentileSpec(value=50, description="primary"),
            data=[DataPointResult(year=1, value=5.0), DataPointResult(year=2, value=6.0)],
        )
        info = SimulationInfo(distribution="d1", iterations=10, seed=1, years=2,
                              time_elapsed=1.5, results=[series])
        return SimulationResponse(success=True, simulation_info=[info])

    def test_to_dict_camel_case(self, response):
        data = response.to_dict()
        info = data["simulationInfo"][0]
        assert info["timeElapsed"] == 1.5
        assert info["cancelled"] is False
        assert info["results"][0]["data"][1] == {"year": 2, "value": 6.0}

    def test_get(self, response):
        assert response.get("d1").iterations == 10
        assert response.get("missing") is None

    def test_to_dataframe(self, response):
        df = response.to_dataframe()
        assert list(df.columns) == ["distribution", "series", "percentile", "description",
                                    "year", "value"]
        assert len(df) == 2
        assert df["value"].tolist() == [5.0, 6.0]

    def test_empty_dataframe(self):
        df = SimulationResponse(success=True).to_dataframe()
        assert df.empty
        assert "value" in df.columns


class TestLoggingConfig:
    """Test logging setup."""

    def test_setup_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        logger = LoggingConfig(level="DEBUG", log_file=str(log_file)).setup_logging()
        try:
            assert logger.name == "montecarlo_sim"
            assert logger.level == logging.DEBUG
            assert len(logger.handlers) == 2
            logging.getLogger("montecarlo_sim.worker").debug("hello")
            for handler in logger.handlers:
                handler.flush()
            assert "hello" in log_file.read_text(encoding="utf-8")
        finally:
            for handler in list(logger.handlers):
                handler.close()
            logger.handlers.clear()
            logger.setLevel(logging.NOTSET)

    def test_disabled(self):
        logger = logging.getLogger("montecarlo_sim")
        before = list(logger.handlers)
        LoggingConfig(enabled=False).setup_logging()
        assert logger.handlers == before
