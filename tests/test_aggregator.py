import random
import threading
import pytest
from twombli.pipeline import (
    BatchSummary, RunAggregator, ImageOutcome, PerImageResult, SUCCEEDED, FAILED, compose_summary_row,
)

def result(prefix, gap=True):
    return PerImageResult(
        file_prefix=prefix, alignment=50.0, dimension=100,
        morphometric_row=f"{prefix}_masks.png,1,2", hdm_value="0.25",
        gap_summary_row=f"{prefix} 1.0 0.0 1.0 1.0 1.0" if gap else None,
    )

def ok(seq, prefix, gap=True):
    return ImageOutcome(seq=seq, file_prefix=prefix, status=SUCCEEDED, result=result(prefix, gap))

def failed(seq, prefix):
    return ImageOutcome(seq=seq, file_prefix=prefix, status=FAILED, reason="detector failed")

def test_compose_summary_row():
    assert compose_summary_row(result("a")) == "a_masks.png,1,2,0.25,50.0,100"

def test_out_of_order_completion_keeps_submission_order():
    sink = BatchSummary()
    agg = RunAggregator(sink)
    agg.submit(ok(3, "C"))
    assert sink.morphometric_rows == [] and agg.pending == 1
    agg.submit(ok(1, "A"))
    agg.submit(ok(2, "B"))
    assert [r.split("_")[0] for r in sink.morphometric_rows] == ["A", "B", "C"]
    assert [r.split()[0] for r in sink.gap_rows] == ["A", "B", "C"]
    assert agg.pending == 0

def test_failed_image_contributes_no_rows():
    sink = BatchSummary()
    agg = RunAggregator(sink)
    for o in (ok(1, "A"), failed(2, "B"), ok(3, "C")):
        agg.submit(o)
    assert agg.merged == ["A", "C"]
    assert len(sink.morphometric_rows) == 2 and len(sink.gap_rows) == 2
    assert not any(r.startswith("B") for r in sink.morphometric_rows + sink.gap_rows)

def test_missing_gap_row_does_not_shift_morphometry():
    sink = BatchSummary()
    agg = RunAggregator(sink)
    for o in (ok(1, "A"), ok(2, "B", gap=False), ok(3, "C")):
        agg.submit(o)
    assert [r.split("_")[0] for r in sink.morphometric_rows] == ["A", "B", "C"]
    assert [r.split()[0] for r in sink.gap_rows] == ["A", "C"]

def test_gap_table_disabled():
    sink = BatchSummary()
    agg = RunAggregator(sink, gap_analysis=False)
    agg.submit(ok(1, "A"))
    agg.submit(ok(2, "B"))
    assert len(sink.morphometric_rows) == 2 and sink.gap_rows == []

def test_duplicate_submission_rejected():
    agg = RunAggregator(BatchSummary())
    agg.submit(ok(1, "A"))
    with pytest.raises(ValueError):
        agg.submit(ok(1, "A"))
    agg.submit(ok(3, "C"))
    with pytest.raises(ValueError):
        agg.submit(ok(3, "C"))

def test_close_flushes_past_missing_sequence():
    sink = BatchSummary()
    agg = RunAggregator(sink)
    agg.submit(ok(1, "A"))
    agg.submit(ok(3, "C"))
    assert agg.close() == [2]
    assert agg.merged == ["A", "C"]

def test_file_backed_sink_appends(tmp_path):
    sink = BatchSummary(tmp_path / "twombli_summary.csv", tmp_path / "gaps_summary.csv")
    agg = RunAggregator(sink)
    agg.submit(ok(2, "B"))
    agg.submit(ok(1, "A"))
    lines = (tmp_path / "twombli_summary.csv").read_text().splitlines()
    assert lines == ["A_masks.png,1,2,0.25,50.0,100", "B_masks.png,1,2,0.25,50.0,100"]
    assert (tmp_path / "gaps_summary.csv").read_text().splitlines()[1].startswith("B ")

def test_concurrent_submitters_preserve_order():
    sink = BatchSummary()
    agg = RunAggregator(sink)
    seqs = list(range(1, 61))
    random.Random(1).shuffle(seqs)
    threads = [threading.Thread(target=agg.submit, args=(ok(s, f"img{s:02d}"),)) for s in seqs]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert agg.merged == [f"img{s:02d}" for s in range(1, 61)]
