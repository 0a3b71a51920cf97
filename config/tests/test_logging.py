import json
import logging
import sys

from config.logging import JsonFormatter, SamplingFilter, event_of


def _record(msg, level=logging.INFO, **extra):
    record = logging.LogRecord("logistics.loans", level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_merges_extra_context():
    payload = json.loads(JsonFormatter().format(_record("loan_status_changed", ref_no=7, status_to="ONGOING")))

    assert payload["message"] == "loan_status_changed"
    assert payload["name"] == "logistics.loans"
    assert payload["ref_no"] == 7
    assert payload["status_to"] == "ONGOING"
    assert payload["time"].endswith("Z")


def test_json_formatter_stringifies_unserializable_values():
    payload = json.loads(JsonFormatter().format(_record("item.created", when=object())))

    assert payload["when"].startswith("<object object")


def test_sampling_never_drops_status_changes_or_warnings():
    sampler = SamplingFilter(rate=0.0, levels=["INFO"], allow_events=["loan_status_changed"])

    assert sampler.filter(_record("loan_status_changed"))
    assert sampler.filter(_record("loan.approved.failed", level=logging.WARNING))
    assert not sampler.filter(_record("loan.created"))


def test_sampling_rate_bounds():
    assert SamplingFilter(rate=1.0).filter(_record("loan.created"))
    assert SamplingFilter(rate="bogus").filter(_record("loan.created"))


def test_event_extra_takes_precedence_over_message():
    assert event_of(_record("loan.approved", event="loan.approved", action="loan.approved")) == "loan.approved"
    assert event_of(_record("integrity error in %s", event="")) == "integrity error in %s"
    assert event_of(_record({"ref_no": 1})) == ""


def test_sampling_keeps_allowed_action_events():
    sampler = SamplingFilter(rate=0.0, allow_events=["loan.approved"])

    assert sampler.filter(_record("anything", event="loan.approved"))
    assert not sampler.filter(_record("anything", event="loan.created"))


def test_json_formatter_renders_exceptions_and_event():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        exc_info = sys.exc_info()
    record = logging.LogRecord("logistics.actions", logging.ERROR, __file__, 1, "loan.approved", None, exc_info)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["event"] == "loan.approved"
    assert "RuntimeError: boom" in payload["exception"]
    assert "exc_info" not in payload
