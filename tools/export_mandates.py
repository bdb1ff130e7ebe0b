"""Export stored mandates for the key holder.

Produces mandates_<epoch>.zip with, per mandate:
- <identifier>/envelope.asc
- <identifier>/signature.png
- <identifier>/meta.json (submission count, timestamps, amounts)
"""
import argparse
import json
import time
import zipfile
from pathlib import Path

from mandate_intake.db import get_mandate, init_db, list_mandates


def export(out: Path, since: int = 0) -> int:
    init_db()
    rows = list_mandates(since)
    with zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as z:
        for row in rows:
            m = get_mandate(row["identifier"])
            ident = m["identifier"]
            z.writestr(f"{ident}/envelope.asc", m["encrypted_data"])
            z.writestr(f"{ident}/signature.png", m["signature_png"])
            meta = {
                "identifier": ident,
                "submission_count": m["submission_count"],
                "created_at": m["created_at"],
                "updated_at": m["updated_at"],
                "amounts": json.loads(m["amounts_json"]) if m["amounts_json"] else None,
            }
            z.writestr(f"{ident}/meta.json", json.dumps(meta, indent=2))
    return len(rows)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--since", type=int, default=0, help="only mandates updated at or after this epoch")
    ap.add_argument("--out", default=None)
    args = ap.parse_args()

    out = Path(args.out or f"mandates_{int(time.time())}.zip")
    count = export(out, args.since)
    print(f"{out} ({count} mandates)")


if __name__ == "__main__":
    main()
