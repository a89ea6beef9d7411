"""Tests for the WorkflowOperation view object."""

from __future__ import annotations

from terminus_client.models.operation import WorkflowOperation

RAW_OPERATION = {
    "id": "op-1",
    "type": "platform",
    "description": "Sync code on dev",
    "result": "succeeded",
    "run_time": 4.5,
    "log_output": "Pushed 3 commits",
}


class TestWorkflowOperation:
    def test_from_payload(self):
        op = WorkflowOperation.from_payload(RAW_OPERATION)
        assert op.id == "op-1"
        assert op.description == "Sync code on dev"
        assert op.run_time == 4.5
        assert op.has_logs()

    def test_serialize(self):
        op = WorkflowOperation.from_payload(RAW_OPERATION)
        assert op.serialize() == {
            "id": "op-1",
            "type": "platform",
            "description": "Sync code on dev",
            "result": "succeeded",
            "duration": "4.50s",
            "log_output": "Pushed 3 commits",
        }

    def test_without_logs(self):
        op = WorkflowOperation.from_payload({"description": "Queue job"})
        assert not op.has_logs()
        data = op.serialize()
        assert data["duration"] is None
        assert data["log_output"] is None

    def test_non_numeric_run_time_ignored(self):
        op = WorkflowOperation.from_payload({"description": "x", "run_time": "soon"})
        assert op.run_time is None

    def test_non_dict_payload(self):
        op = WorkflowOperation.from_payload("Converge environment")
        assert op.description == "Converge environment"

    def test_structural_equality(self):
        a = WorkflowOperation.from_payload(dict(RAW_OPERATION))
        b = WorkflowOperation.from_payload(dict(RAW_OPERATION))
        assert a == b
        assert hash(a) == hash(b)
        assert a != WorkflowOperation.from_payload({**RAW_OPERATION, "result": "failed"})
