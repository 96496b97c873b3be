import json
import logging
import os
from typing import Dict, List

from infra.pdf.parser import parse_pdf_text

log = logging.getLogger("extract_resume_text")
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)


def extract_directory(directory: str) -> List[Dict[str, str]]:
    files = sorted(f for f in os.listdir(directory) if f.lower().endswith(".pdf"))
    log.info(f"Processing {len(files)} PDFs...")
    results = []
    for name in files:
        try:
            text = parse_pdf_text(os.path.join(directory, name))
        except Exception as e:
            log.error(f"Error parsing {name}: {e}")
            continue
        results.append({"filename": name, "text": text})
        log.info(f"Parsed: {name}")
    return results


def main(directory: str, output_path: str) -> int:
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Missing directory: {directory}")
    results = extract_directory(directory)
    with open(output_path, "w", encoding="utf-8") as out:
        json.dump(results, out, indent=2, ensure_ascii=False)
    log.info(f"Saved text to {output_path}")
    return len(results)


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Extract plain text from a directory of resume PDFs")
    parser.add_argument("--dir", required=True, help="Directory containing PDFs")
    parser.add_argument("--out", default="resumes_text.json", help="Output JSON path")
    args = parser.parse_args()
    main(args.dir, args.out)
