"""Tests for client effort analysis."""

import random

import pytest

from effort_engine.core.effort_analyzer import (
    BUTTON_CLICK_THRESHOLD,
    MAX_JOURNEY_STEPS,
    TIME_WINDOW_MS,
    analyze,
    analyze_behavior,
    channel_labels,
    count_back_and_forth,
    count_channel_switches,
    count_errors,
    count_repeated_actions,
    count_repeated_clicks,
    effort_score,
    navigation_locations,
)
from effort_engine.core.schemas_effort import EffortAnalysis
from effort_engine.services.synthetic_logs import SyntheticLogSource


def test_empty_sequence_scores_zero():
    assert analyze([]) == EffortAnalysis()


class TestErrors:
    def test_counts_lines_matching_error_rule(self, make_events):
        events = make_events(
            (1, "Error in PaymentService"),
            (2, "payment rejected"),
            (3, "all good"),
            (4, "TIMEOUT waiting for quote"),
        )

        assert count_errors(events) == 3

    def test_high_error_rate_at_threshold(self, make_events):
        events = make_events((1, "error"), (2, "error"), (3, "error"))

        analysis = analyze(events)

        assert analysis.error_count == 3
        assert analysis.high_error_rate is True
        assert analysis.effort_score == pytest.approx(25.0)


class TestRepeatedActions:
    def test_burst_inside_window(self):
        assert count_repeated_actions([0, 1, 2, 3, 4]) == 1

    def test_span_equal_to_window_counts(self):
        assert count_repeated_actions([0, 1, 2, 3, TIME_WINDOW_MS]) == 1

    def test_span_over_window_does_not_count(self):
        assert count_repeated_actions([0, 100_000, 200_000, 300_000, 400_000]) == 0

    def test_fewer_than_threshold(self):
        assert count_repeated_actions([0, 1, 2, 3]) == 0

    def test_jumps_past_a_hit(self):
        # nine rapid clicks: one burst of five, four left over
        assert count_repeated_actions(list(range(9))) == 1
        assert count_repeated_actions(list(range(10))) == 2

    def test_unsorted_input(self):
        assert count_repeated_actions([4, 0, 3, 1, 2]) == 1

    def test_clicks_grouped_by_action_and_context(self, make_events):
        same = make_events(*[(i * 1000, "click submit") for i in range(BUTTON_CLICK_THRESHOLD)])
        mixed = make_events(
            *[(i * 1000, "click save") for i in range(3)],
            *[(i * 1000 + 500, "click cancel") for i in range(3)],
        )

        assert count_repeated_clicks(same) == 1
        assert count_repeated_clicks(mixed) == 0

    def test_any_burst_sets_flag(self, make_events):
        events = make_events(*[(i, "tap buy") for i in range(5)])

        analysis = analyze(events)

        assert analysis.repeated_click_count == 1
        assert analysis.high_repeated_clicks is True
        assert analysis.effort_score == pytest.approx(5.0)


class TestBackAndForth:
    @pytest.mark.parametrize(
        "locations,expected",
        [
            (["A", "B", "A"], 1),
            (["A", "B", "A", "B", "A"], 1),
            (["A", "A", "A"], 0),
            (["A", "B", "A", "C", "D", "C"], 2),
            (["A", "B"], 0),
            ([], 0),
        ],
    )
    def test_count_back_and_forth(self, locations, expected):
        assert count_back_and_forth(locations) == expected

    def test_locations_prefer_api_path(self, make_events):
        events = make_events(
            (1, "navigate path=/home"),
            (2, "opened settings screen"),
            (3, "path=/cart without keyword"),
        )

        locations = navigation_locations(events)

        assert locations[0] == "/home"
        assert "screen" in locations[1]
        assert len(locations) == 2


class TestChannelSwitches:
    def test_labels_resolved_per_event(self, make_events):
        events = make_events(
            (1, "login via web"),
            (2, "registered new device"),
            (3, "switch channel to mobile"),
            (4, "no channel mention"),
        )

        assert channel_labels(events)[:2] == ["web", "device"]
        assert channel_labels(events)[2] == "mobile"

    def test_adjacent_label_changes(self):
        assert count_channel_switches(["web", "mobile", "mobile", "web"]) == 2
        assert count_channel_switches(["web"]) == 0
        assert count_channel_switches([]) == 0


class TestEffortScore:
    def test_each_dimension_capped(self):
        assert effort_score(3, 5, 10, 2) == pytest.approx(100.0)
        assert effort_score(300, 500, 1000, 200) == pytest.approx(100.0)

    def test_linear_below_threshold(self):
        assert effort_score(1, 0, 0, 0) == pytest.approx(25 / 3)
        assert effort_score(0, 0, 5, 1) == pytest.approx(25.0)

    def test_high_effort_at_fifty(self, make_events):
        events = make_events(
            (1, "error"),
            (2, "error"),
            (3, "error"),
            (4, "on web"),
            (5, "on mobile"),
            (6, "on web"),
        )

        analysis = analyze(events)

        assert analysis.channel_switch_count == 2
        assert analysis.effort_score == pytest.approx(50.0)
        assert analysis.high_effort is True
        assert analysis.high_channel_switching is True
        assert analysis.high_back_forth_navigation is False


class TestAnalyze:
    def test_order_independent_and_input_untouched(self):
        events = SyntheticLogSource(effort_level=4, count=60, clock=lambda: 1_700_000_000_000).fetch(
            "s1", 24
        )
        shuffled = list(events)
        random.Random(7).shuffle(shuffled)
        before = list(shuffled)

        assert analyze(shuffled) == analyze(events)
        assert shuffled == before

    @pytest.mark.parametrize("level", [0, 1, 3, 5])
    def test_score_bounded(self, level):
        events = SyntheticLogSource(effort_level=level, clock=lambda: 1_700_000_000_000).fetch(
            "s1", 24
        )

        score = analyze(events).effort_score

        assert 0.0 <= score <= 100.0

    def test_numeric_fields_skip_flags(self):
        fields = EffortAnalysis(error_count=2, effort_score=12.5, high_effort=True).numeric_fields()

        assert fields == {
            "error_count": 2,
            "repeated_click_count": 0,
            "back_forth_navigation_count": 0,
            "channel_switch_count": 0,
            "effort_score": 12.5,
        }


class TestAnalyzeBehavior:
    def test_histograms_journey_and_success_rate(self, make_events):
        events = make_events(
            (2000, '{"path":"/api/cart","httpMethod":"POST","statusCode":"500"} error'),
            (1000, '{"path":"/api/cart","httpMethod":"GET","statusCode":"200"}'),
            (500, "plain log line"),
        )

        behavior = analyze_behavior(events, 12)

        assert behavior.total_logs == 3
        assert behavior.time_period_hours == 12
        assert behavior.api_paths == {"/api/cart": 2}
        assert behavior.status_codes == {"200": 1, "500": 1}
        assert behavior.error_types == {"error": 1}
        assert [step.timestamp for step in behavior.user_journey] == [1000, 2000]
        assert behavior.user_journey[0].method == "GET"
        assert behavior.success_rate == pytest.approx(0.5)

    def test_journey_capped(self, make_events):
        events = make_events(*[(i, f"path=/p{i} status=200") for i in range(30)])

        behavior = analyze_behavior(events, 1)

        assert len(behavior.user_journey) == MAX_JOURNEY_STEPS
        assert behavior.success_rate == pytest.approx(1.0)

    def test_no_status_codes(self, make_events):
        behavior = analyze_behavior(make_events((1, "hello")), 1)

        assert behavior.success_rate == 0.0
        assert behavior.user_journey == []


class TestInvariants:
    def test_clicks_spread_over_ten_minutes(self, make_events):
        events = make_events(*[(i * 150_000, "click submit") for i in range(5)])

        assert analyze(events).repeated_click_count == 0

    def test_no_bounce_without_return(self):
        assert count_back_and_forth(["A", "B", "C"]) == 0

    def test_channel_run_switches(self):
        assert count_channel_switches(["web", "web", "mobile", "mobile", "web"]) == 2

    def test_no_errors_no_flag(self, make_events):
        analysis = analyze(make_events((1, "click submit"), (2, "path=/home")))

        assert analysis.error_count == 0
        assert analysis.high_error_rate is False

    def test_pure(self, make_events):
        events = make_events((3, "error"), (1, "on web"), (2, "on mobile"))

        assert analyze(events) == analyze(events)
        assert [e.timestamp for e in events] == [3, 1, 2]
