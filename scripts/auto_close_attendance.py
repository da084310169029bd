"""Close attendance records left open past their checkout deadline.

Meant to run from cron every few minutes. ``--dry-run`` only reports what would be closed.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from clinic_attendance.main import create_container


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--dry-run", action="store_true", help="report overdue records without closing them")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    container = create_container()
    report = container.auto_close_service.run(dry_run=args.dry_run)

    for outcome in report.outcomes:
        state = "closed" if outcome.closed else ("would close" if report.dry_run else "skipped")
        print(
            f"attendance={outcome.attendance_id} user={outcome.user_id} {state} "
            f"deadline={outcome.max_checkout_time:%Y-%m-%d %H:%M} exceeded={outcome.exceeded_by_minutes}m "
            f"time_out={outcome.time_out:%H:%M}"
        )
    print(f"checked={report.checked} overdue={len(report.outcomes)} closed={report.closed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
