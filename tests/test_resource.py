from locallens.core.planner.models import LocalStory
from locallens.core.resource import Resource, ResourceStatus


def test_states():
    assert Resource.pending().status == ResourceStatus.PENDING
    assert Resource.succeeded(3).value == 3
    failed = Resource.failed("timeout")
    assert failed.status == ResourceStatus.FAILED
    assert failed.reason == "timeout"
    assert not failed.is_succeeded


def test_to_dict_serializes_models():
    story = LocalStory(id="s1", title="Kursura")
    assert Resource.succeeded(story).to_dict()["value"]["title"] == "Kursura"
    assert Resource.succeeded([story]).to_dict()["value"][0]["id"] == "s1"
    assert Resource.failed("x").to_dict() == {"status": "failed", "value": None, "reason": "x"}
