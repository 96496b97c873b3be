import json
import logging

from infra.db.session import init_db
from infra.repositories.jobs_repository import JobsRepository

log = logging.getLogger("export_jobs")
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)


def main(output_path: str) -> int:
    init_db()
    jobs = JobsRepository().find()
    with open(output_path, "w", encoding="utf-8") as out:
        json.dump(jobs, out, indent=2, ensure_ascii=False)
    log.info(f"Dumped {len(jobs)} jobs to {output_path}")
    return len(jobs)


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Dump all stored jobs to a JSON file")
    parser.add_argument("--out", default="jobs_dump.json", help="Output JSON path")
    args = parser.parse_args()
    main(args.out)
