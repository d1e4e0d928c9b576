"""
Log formatter tests — actor and claim context on each line.
"""

import json
import logging

from cmcs.middleware.logging_config import JSONFormatter, ReadableFormatter


def _record(**extra):
    record = logging.LogRecord("cmcs.services.claim_lifecycle", logging.INFO, __file__, 10,
                               "Claim %s approved", ("CL-0007",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_readable_line_carries_actor_and_claim():
    line = ReadableFormatter().format(_record(actor_id=3, claim_id=7))
    assert line.endswith("Claim CL-0007 approved actor=3 claim=7")


def test_readable_line_without_context():
    line = ReadableFormatter().format(_record())
    assert line.endswith("Claim CL-0007 approved")


def test_json_line_includes_context_fields():
    entry = json.loads(JSONFormatter().format(_record(actor_id=3, claim_id=7, request_id="r1")))
    assert entry["message"] == "Claim CL-0007 approved"
    assert entry["actor_id"] == 3
    assert entry["claim_id"] == 7
    assert entry["request_id"] == "r1"
    assert "duration_ms" not in entry
