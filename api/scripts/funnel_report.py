import argparse
import json
import sys
from datetime import date, timedelta
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from funnel.database import SessionLocal
from funnel.services.metrics import metrics_funnel_summary


def main() -> None:
    parser = argparse.ArgumentParser(description="Print survey funnel metrics for a date range")
    parser.add_argument("--date-from", type=date.fromisoformat, default=None)
    parser.add_argument("--date-to", type=date.fromisoformat, default=None)
    parser.add_argument("--days", type=int, default=30, help="window size when --date-from is omitted")
    args = parser.parse_args()

    date_to = args.date_to or date.today()
    date_from = args.date_from or date_to - timedelta(days=args.days)

    with SessionLocal() as db:
        report = metrics_funnel_summary(db, date_from=date_from, date_to=date_to)

    print(json.dumps(report, indent=2))


if __name__ == "__main__":
    main()
