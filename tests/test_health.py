"""
Uptime formatting and the fail-threshold state machine
"""

import pytest

from health import FailCheck, HealthState, StartInstant, evaluate_fail, format_duration, healthz_body


class TestFormatDuration:
    """Durations print the way Go's time.Duration does"""

    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (0, "0s"),
            (750e-9, "750ns"),
            (1.5e-6, "1.5µs"),
            (0.0015, "1.5ms"),
            (0.25, "250ms"),
            (1.5, "1.5s"),
            (59, "59s"),
            (120, "2m0s"),
            (3600, "1h0m0s"),
            (3723.456, "1h2m3.456s"),
        ],
    )
    def test_formats(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_negative_duration_keeps_sign(self):
        assert format_duration(-1.5) == "-1.5s"

    def test_healthz_body(self):
        assert healthz_body(62.5) == "Uptime 1m2.5s\nOK\n"


class TestStartInstant:

    def test_uptime_counts_from_start(self):
        now = [100.0]
        started = StartInstant.now(lambda: now[0])
        now[0] = 112.5
        assert started.uptime(lambda: now[0]) == pytest.approx(12.5)

    def test_uptime_never_negative(self):
        started = StartInstant(monotonic=50.0)
        assert started.uptime(lambda: 40.0) == 0.0

    def test_start_instant_is_immutable(self):
        started = StartInstant(monotonic=1.0)
        with pytest.raises(AttributeError):
            started.monotonic = 2.0


class TestEvaluateFail:

    def test_healthy_before_threshold(self):
        check = evaluate_fail(5.0, 10.0)
        assert check.state is HealthState.HEALTHY
        assert check.status_code == 200
        assert check.body == "still OK, 5.0 seconds before failing\nUptime 5.0 seconds\n"

    def test_failed_after_threshold(self):
        check = evaluate_fail(15.0, 10.0)
        assert check.state is HealthState.FAILED
        assert check.status_code == 500
        assert check.body == "failed since 5.0 seconds\nUptime 15.0 seconds\n"

    def test_threshold_itself_is_failed(self):
        check = evaluate_fail(10.0, 10.0)
        assert check.state is HealthState.FAILED
        assert check.body.startswith("failed since 0.0 seconds\n")

    def test_one_fractional_digit(self):
        check = evaluate_fail(3.14159, 10.0)
        assert check.body == "still OK, 6.9 seconds before failing\nUptime 3.1 seconds\n"

    def test_once_failed_stays_failed(self):
        states = [evaluate_fail(t, 10.0).state for t in (0.0, 9.9, 10.0, 10.1, 60.0, 3600.0)]
        first_failed = states.index(HealthState.FAILED)
        assert all(s is HealthState.FAILED for s in states[first_failed:])
        assert all(s is HealthState.HEALTHY for s in states[:first_failed])

    def test_fail_check_is_value(self):
        assert evaluate_fail(1.0, 10.0) == FailCheck(HealthState.HEALTHY, 1.0, 10.0)
