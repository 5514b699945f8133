"""Tests for batch result reconciliation."""

from rpc_connector.core import ReconciliationReporter
from rpc_connector.schema import RecordResult


class TestReconciliationReporter:
    """Test one-result-per-record reconciliation."""

    def setup_method(self):
        self.reporter = ReconciliationReporter()
        self.records = [{"id": "a"}, {"id": "b"}, {"id": "c"}]

    def test_input_order_kept(self):
        attempted = [
            RecordResult("c", True),
            RecordResult("a", False, "nope"),
            RecordResult("b", True),
        ]

        results = self.reporter.reconcile(self.records, attempted, "id")

        assert [r.identifier for r in results] == ["a", "b", "c"]
        assert [r.success for r in results] == [False, True, True]
        assert results[0].error_message == "nope"

    def test_missing_outcome_is_failure(self):
        results = self.reporter.reconcile(self.records, [RecordResult("a", True)], "id")

        assert results[1] == RecordResult("b", False)
        assert results[2] == RecordResult("c", False)
        assert results[1].error_message is None

    def test_stray_outcomes_dropped(self):
        attempted = [RecordResult(x, True) for x in ("a", "b", "c", "zzz")]

        results = self.reporter.reconcile(self.records, attempted, "id")

        assert len(results) == 3
        assert "zzz" not in {r.identifier for r in results}

    def test_failure_wins_over_success(self):
        attempted = [
            RecordResult("a", True),
            RecordResult("a", False, "second attempt failed"),
            RecordResult("a", True),
        ]

        results = self.reporter.reconcile(self.records, attempted, "id")

        assert results[0] == RecordResult("a", False, "second attempt failed")

    def test_empty_batch(self):
        assert self.reporter.reconcile([], [], "id") == []
