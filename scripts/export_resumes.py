import base64
import logging
import os
import re
from collections import defaultdict
from typing import Dict, List, Optional

from infra.db.session import init_db
from infra.repositories.candidates_repository import CandidatesRepository

log = logging.getLogger("export_resumes")
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)

EXTENSIONS = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}


def group_by_job(candidates: List[Dict]) -> Dict[str, List[Dict]]:
    jobs_map: Dict[str, List[Dict]] = defaultdict(list)
    for c in candidates:
        jobs_map[c.get("associated_job_id") or "unknown"].append(c)
    return dict(jobs_map)


def pick_busiest_job(jobs_map: Dict[str, List[Dict]]) -> Optional[str]:
    if not jobs_map:
        return None
    return max(jobs_map, key=lambda jid: len(jobs_map[jid]))


def resume_filename(candidate: Dict) -> str:
    ext = EXTENSIONS.get(candidate.get("resume_mime_type") or "", "bin")
    safe = re.sub(r"[^a-z0-9]", "_", candidate["name"], flags=re.I)
    return f"{safe}_{candidate['id']}.{ext}"


def export_resumes(candidates: List[Dict], output_dir: str) -> int:
    os.makedirs(output_dir, exist_ok=True)
    saved = 0
    for c in candidates:
        if not c.get("resume_base64"):
            log.info(f"Skipped {c['name']} (no inline resume)")
            continue
        path = os.path.join(output_dir, resume_filename(c))
        with open(path, "wb") as out:
            out.write(base64.b64decode(c["resume_base64"]))
        log.info(f"Saved: {os.path.basename(path)}")
        saved += 1
    return saved


def main(job_id: Optional[str], root: str) -> int:
    init_db()
    jobs_map = group_by_job(CandidatesRepository().find())
    log.info("Candidates per job:")
    for jid, items in jobs_map.items():
        log.info(f"- Job ID: {jid}, Count: {len(items)}")

    target = job_id or pick_busiest_job(jobs_map)
    if not target or not jobs_map.get(target):
        log.info("No candidates found.")
        return 0

    output_dir = os.path.join(root, target)
    saved = export_resumes(jobs_map[target], output_dir)
    log.info(f"Extracted {saved} resumes to {output_dir}")
    return saved


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(
        description="Write stored resumes for one job back to disk")
    parser.add_argument("--job", default=None,
                        help="Job id (defaults to the job with the most candidates)")
    parser.add_argument("--out", default="temp_resumes", help="Root output directory")
    args = parser.parse_args()
    main(args.job, args.out)
