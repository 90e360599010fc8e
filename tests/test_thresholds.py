import pytest

from telemetry_api.classification.thresholds import SeverityBounds, classify
from telemetry_api.core.domain.feed_config import FeedConfig
from telemetry_api.core.domain.status import SeverityBand

BOUNDS = SeverityBounds(normal_max=5.0, warning_max=8.0, normal_min=1.0)


class TestClassify:

    @pytest.mark.parametrize("temperature,expected", [
        (-20.0, SeverityBand.NORMAL),
        (0.5, SeverityBand.NORMAL),
        (5.0, SeverityBand.NORMAL),
        (5.01, SeverityBand.WARNING),
        (8.0, SeverityBand.WARNING),
        (8.01, SeverityBand.CRITICAL),
        (40.0, SeverityBand.CRITICAL),
    ])
    def test_bands_are_closed_above(self, temperature, expected):
        assert classify(temperature, BOUNDS) == expected

    def test_normal_min_does_not_change_band(self):
        # Por debajo del rango seguro sigue siendo NORMAL
        assert classify(0.0, BOUNDS) == SeverityBand.NORMAL
        assert classify(0.0, SeverityBounds(5.0, 8.0)) == SeverityBand.NORMAL

    def test_monotonic(self):
        temps = [t / 4 for t in range(-40, 80)]
        ranks = [classify(t, BOUNDS).rank for t in temps]

        assert ranks == sorted(ranks)

    def test_equal_bounds_skip_warning(self):
        bounds = SeverityBounds(normal_max=5.0, warning_max=5.0)

        assert classify(5.0, bounds) == SeverityBand.NORMAL
        assert classify(5.1, bounds) == SeverityBand.CRITICAL


class TestBoundsFromConfig:

    def test_default_config_bounds(self):
        bounds = FeedConfig().bounds

        assert bounds.to_dict() == {"normal_min": 1.0, "normal_max": 5.0, "warning_max": 8.0}

    def test_custom_bounds_from_config(self):
        bounds = FeedConfig(normal_max=6.0, warning_max=10.0).bounds

        assert classify(7.5, bounds) == SeverityBand.WARNING
