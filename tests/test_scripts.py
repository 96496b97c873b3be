import base64

from scripts.export_resumes import export_resumes, group_by_job, pick_busiest_job, resume_filename


def _candidate(cid, job_id, name="Ada Lovelace", data=b"%PDF", mime="application/pdf"):
    return {
        "id": cid,
        "associated_job_id": job_id,
        "name": name,
        "resume_mime_type": mime,
        "resume_base64": base64.b64encode(data).decode() if data else "",
    }


def test_busiest_job_wins():
    jobs_map = group_by_job([
        _candidate("c1", "job_a"), _candidate("c2", "job_b"), _candidate("c3", "job_b"),
        _candidate("c4", None),
    ])
    assert sorted(jobs_map) == ["job_a", "job_b", "unknown"]
    assert pick_busiest_job(jobs_map) == "job_b"
    assert pick_busiest_job({}) is None


def test_filename_is_sanitized():
    assert resume_filename(_candidate("c1", "j", name="Ada O'Neil")) == "Ada_O_Neil_c1.pdf"
    assert resume_filename(_candidate("c2", "j", mime="image/png")).endswith(".bin")


def test_export_skips_candidates_without_inline_resume(tmp_path):
    saved = export_resumes([
        _candidate("c1", "j", data=b"%PDF-1.4 one"),
        _candidate("c2", "j", name="Big File", data=None),
    ], str(tmp_path / "out"))
    assert saved == 1
    [written] = (tmp_path / "out").iterdir()
    assert written.read_bytes() == b"%PDF-1.4 one"
