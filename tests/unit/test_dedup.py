"""
Unit tests for RecordIndex, the conflict/dedup policy shared by the memory and
file-journal stores.
"""

import pytest

from shortener import codegen
from shortener.exceptions import AllocationExhaustedError
from shortener.storage.dedup import RecordIndex
from shortener.storage.models import Record


@pytest.fixture
def index():
    idx = RecordIndex()
    idx.put(Record("AAAA0001", "https://a.com", "u1"))
    return idx


def test_admit_fresh(index):
    admission = index.admit("BBBB0002", "https://b.com", "u2")
    assert admission.fresh is True
    assert admission.record.short_code == "BBBB0002"
    assert index.get("BBBB0002") is None  # planning does not store


def test_admit_existing_url_is_conflict(index):
    admission = index.admit("BBBB0002", "https://a.com", "u2")
    assert admission.fresh is False
    assert admission.record.short_code == "AAAA0001"
    result = admission.result("http://x")
    assert result.short_url == "http://x/AAAA0001"
    assert result.conflict is True


def test_admit_code_collision(index):
    assert index.admit("AAAA0001", "https://other.com", "u1") is None


def test_plan_batch_dedups_existing_and_within_batch(index):
    codes, staged = index.plan_batch("u1", ["https://a.com", "https://n.com", "https://n.com"])
    assert codes[0] == "AAAA0001"
    assert codes[1] == codes[2]
    assert len(staged) == 1
    assert staged[0].original_url == "https://n.com"
    assert index.code_for_url("https://n.com") is None


def test_plan_batch_avoids_codes_staged_in_same_batch(monkeypatch):
    sequence = iter(["DUPLICAT", "DUPLICAT", "UNIQUE02"])
    monkeypatch.setattr(codegen, "generate_code", lambda length: next(sequence))
    codes, staged = RecordIndex().plan_batch("u1", ["https://1.com", "https://2.com"])
    assert codes == ["DUPLICAT", "UNIQUE02"]


def test_plan_batch_exhausted_stages_nothing(index, monkeypatch):
    monkeypatch.setattr(codegen, "generate_code", lambda length: "AAAA0001")
    with pytest.raises(AllocationExhaustedError):
        index.plan_batch("u1", ["https://z.com"])
    assert len(index) == 1


def test_plan_tombstones_owner_scoped(index):
    index.put(Record("CCCC0003", "https://c.com", "u2"))
    planned = index.plan_tombstones("u1", ["AAAA0001", "CCCC0003", "missing", "AAAA0001"])
    assert [r.short_code for r in planned] == ["AAAA0001"]
    assert planned[0].is_deleted is True
    assert index.get("AAAA0001").is_deleted is False  # not committed yet


def test_plan_tombstones_skips_already_deleted_and_anonymous(index):
    index.put(index.get("AAAA0001").tombstoned())
    assert index.plan_tombstones("u1", ["AAAA0001"]) == []
    assert index.plan_tombstones("", ["AAAA0001"]) == []


def test_live_for_excludes_deleted_and_keeps_order(index):
    index.put(Record("BBBB0002", "https://b.com", "u1"))
    index.put(Record("CCCC0003", "https://c.com", "u1"))
    index.put(index.get("BBBB0002").tombstoned())
    assert [r.short_code for r in index.live_for("u1")] == ["AAAA0001", "CCCC0003"]
    assert index.live_for("") == []


def test_put_replacing_url_updates_secondary_index(index):
    index.put(Record("AAAA0001", "https://moved.com", "u1"))
    assert index.code_for_url("https://a.com") is None
    assert index.code_for_url("https://moved.com") == "AAAA0001"
