"""Unit tests for aggregation helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from models.execution import ExecutionRecord
from services import aggregation


def execution(started=None, stopped=None, finished=False, **extra):
    return {"startedAt": started, "stoppedAt": stopped, "finished": finished, **extra}


def workflow_with_nodes(count: int, **extra) -> dict:
    return {
        "name": "wf",
        "nodes": [{"name": f"n{i}", "type": "n8n-nodes-base.set"} for i in range(count)],
        **extra,
    }


class TestSuccessRate:
    """Tests for success_rate."""

    def test_empty_is_zero(self):
        assert aggregation.success_rate([]) == 0
        assert aggregation.success_rate(None) == 0

    def test_half_finished(self):
        """One finished and one stopped-without-finishing gives 50%."""
        executions = [
            execution("2024-01-01T10:00:00Z", "2024-01-01T10:00:02Z", finished=True),
            execution("2024-01-01T10:05:00Z", "2024-01-01T10:05:01Z", finished=False),
        ]
        assert aggregation.success_rate(executions) == 50

    def test_rounds_half_up(self):
        """Rounding matches Math.round."""
        executions = [execution(finished=True)] + [execution() for _ in range(7)]
        # 12.5% rounds up
        assert aggregation.success_rate(executions) == 13

    def test_accepts_records(self):
        records = [ExecutionRecord(finished=True), ExecutionRecord(finished=True)]
        assert aggregation.success_rate(records) == 100


class TestAverageDuration:
    """Tests for average_duration."""

    def test_empty(self):
        assert aggregation.average_duration([]) == "0ms"

    def test_mean_of_complete_records(self):
        executions = [
            execution("2024-01-01T10:00:00Z", "2024-01-01T10:00:01Z"),
            execution("2024-01-01T11:00:00Z", "2024-01-01T11:00:03Z"),
            execution("2024-01-01T12:00:00Z"),
        ]
        assert aggregation.average_duration(executions) == "2000ms"

    def test_epoch_milliseconds(self):
        """Numeric timestamps are epoch milliseconds."""
        assert aggregation.average_duration([execution(1000, 1250)]) == "250ms"

    def test_no_complete_records(self):
        assert aggregation.average_duration([execution("2024-01-01T10:00:00Z")]) == "0ms"


class TestPeakHour:
    """Tests for peak_hour."""

    def test_no_data(self):
        assert aggregation.peak_hour([]) == "No data"

    def test_no_start_times(self):
        assert aggregation.peak_hour([execution(), execution()]) == "No pattern"

    def test_busiest_hour_in_utc(self):
        executions = [
            execution("2024-01-01T09:15:00Z"),
            execution("2024-01-01T14:10:00Z"),
            execution("2024-01-02T14:40:00Z"),
            execution("2024-01-01T16:00:00+02:00"),
        ]
        assert aggregation.peak_hour(executions) == "14:00 - 15:00"

    def test_tie_goes_to_lowest_hour(self):
        executions = [
            execution("2024-01-01T20:00:00Z"),
            execution("2024-01-01T03:00:00Z"),
        ]
        assert aggregation.peak_hour(executions) == "3:00 - 4:00"


class TestComplexity:
    """Tests for complexity tiers."""

    @pytest.mark.parametrize(
        "count, expected",
        [(4, "Simple"), (10, "Moderate"), (20, "Complex"), (35, "Very Complex")],
    )
    def test_tiers(self, count, expected):
        assert aggregation.complexity(workflow_with_nodes(count)) == expected

    def test_boundaries(self):
        assert aggregation.complexity(workflow_with_nodes(5)) == "Moderate"
        assert aggregation.complexity(workflow_with_nodes(15)) == "Complex"
        assert aggregation.complexity(workflow_with_nodes(30)) == "Very Complex"

    def test_missing_nodes(self):
        assert aggregation.complexity({"name": "empty", "nodes": None}) == "Simple"


class TestErrorPatterns:
    """Tests for error_patterns."""

    def test_counts_last_node_of_failures(self):
        executions = [
            execution(stopped="2024-01-01T10:00:00Z", data={"resultData": {"lastNodeExecuted": "HTTP"}}),
            execution(stopped="2024-01-01T10:00:00Z", data={"resultData": {"lastNodeExecuted": "HTTP"}}),
            execution(stopped="2024-01-01T10:00:00Z", data={}),
            execution(stopped="2024-01-01T10:00:00Z", finished=True, data={"lastNodeExecuted": "Set"}),
        ]

        patterns = aggregation.error_patterns(executions)

        assert patterns == [
            {"node": "HTTP", "count": 2, "percentage": 67},
            {"node": "Unknown", "count": 1, "percentage": 33},
        ]

    def test_no_failures(self):
        assert aggregation.error_patterns([execution(finished=True)]) == []


class TestWorkflowInsights:
    """Tests for optimization, bottleneck, cost and recommendation helpers."""

    def test_suggests_error_workflow_when_missing(self):
        suggestions = aggregation.optimization_suggestions(workflow_with_nodes(2))
        assert [s["type"] for s in suggestions] == ["error-handling"]

    def test_suggests_parallelization_and_batches(self):
        nodes = [{"name": f"n{i}", "type": "n8n-nodes-base.set"} for i in range(5)]
        nodes.append({"name": "Loop", "type": "n8n-nodes-base.splitInBatches"})
        connections = {
            f"n{i}": {"main": [[{"node": f"n{i + 1}", "type": "main", "index": 0}]]}
            for i in range(4)
        }
        workflow = {
            "nodes": nodes,
            "connections": connections,
            "settings": {"errorWorkflow": "99"},
        }

        types = [s["type"] for s in aggregation.optimization_suggestions(workflow)]

        assert types == ["parallelization", "batch-processing"]

    def test_bottlenecks_lists_http_nodes(self):
        workflow = {
            "nodes": [
                {"name": "Fetch", "type": "n8n-nodes-base.httpRequest"},
                {"name": "Set", "type": "n8n-nodes-base.set"},
            ]
        }
        result = aggregation.bottlenecks(workflow)
        assert result[0]["nodes"] == ["Fetch"]
        assert aggregation.bottlenecks(workflow_with_nodes(3)) == []

    def test_cost_estimate_extrapolates_monthly_volume(self):
        executions = [execution() for _ in range(7)]
        estimate = aggregation.cost_estimate(workflow_with_nodes(3), executions)
        assert estimate["estimatedMonthlyExecutions"] == 30
        assert estimate["computeComplexity"] == "Simple"
        assert estimate["recommendation"] == "Current usage is within optimal range"

    def test_cost_estimate_high_volume(self):
        executions = [execution() for _ in range(300)]
        estimate = aggregation.cost_estimate(workflow_with_nodes(3), executions)
        assert estimate["recommendation"] == "Consider optimizing for high-volume usage"

    def test_cost_estimate_rejects_empty_window(self):
        with pytest.raises(ValueError, match="window_days must be positive"):
            aggregation.cost_estimate(workflow_with_nodes(1), [], window_days=0)

    def test_recommendations(self):
        result = aggregation.recommendations(workflow_with_nodes(25), [execution()])
        assert result == [
            "Improve error handling to increase success rate",
            "Consider breaking down into smaller, modular workflows",
            "Add detailed description for better documentation",
        ]

    def test_data_patterns(self):
        executions = [
            execution("2024-01-01T08:00:00Z", finished=True, mode="webhook"),
            execution("2024-01-01T08:30:00Z", finished=True, mode="trigger"),
        ]
        patterns = aggregation.data_patterns(executions)
        assert patterns == {
            "timeOfDay": "8:00 - 9:00",
            "successTrends": 100,
            "triggerModes": {"webhook": 1, "trigger": 1},
        }

    def test_extract_webhooks(self):
        workflow = {
            "nodes": [
                {
                    "id": "w1",
                    "name": "Hook",
                    "type": "n8n-nodes-base.webhook",
                    "parameters": {"path": "lead", "httpMethod": "POST"},
                },
                {"id": "s1", "name": "Set", "type": "n8n-nodes-base.set"},
            ]
        }

        webhooks = aggregation.extract_webhooks(workflow, lambda path: f"http://n8n/webhook/{path}")

        assert webhooks == [{
            "id": "w1",
            "name": "Hook",
            "path": "lead",
            "method": "POST",
            "url": "http://n8n/webhook/lead",
        }]


class TestPeriods:
    """Tests for parse_period and within_period."""

    @pytest.mark.parametrize(
        "period, expected",
        [
            ("30m", timedelta(minutes=30)),
            ("12h", timedelta(hours=12)),
            ("7d", timedelta(days=7)),
            ("2w", timedelta(weeks=2)),
        ],
    )
    def test_parse_period(self, period, expected):
        assert aggregation.parse_period(period) == expected

    @pytest.mark.parametrize("period", ["", "7", "d7", "0d", "1y"])
    def test_parse_period_invalid(self, period):
        with pytest.raises(ValueError, match="Invalid period"):
            aggregation.parse_period(period)

    def test_within_period(self):
        now = datetime(2024, 1, 10, tzinfo=timezone.utc)
        executions = [
            execution("2024-01-09T00:00:00Z", id="recent"),
            execution("2024-01-01T00:00:00Z", id="old"),
            execution(None, id="unstarted"),
        ]

        recent = aggregation.within_period(executions, timedelta(days=7), now)

        assert [e.id for e in recent] == ["recent"]
