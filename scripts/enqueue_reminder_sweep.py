#!/usr/bin/env python
"""
Queue the overdue-reminder sweep; run from cron once a day.

Usage:
    python scripts/enqueue_reminder_sweep.py [YYYY-MM-DD]
"""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from redis import Redis

from signoff.core.config import get_settings
from signoff.core.logging import setup_logging
from signoff.workers.worker import enqueue_overdue_sweep


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    as_of = sys.argv[1] if len(sys.argv) > 1 else None
    job_id = enqueue_overdue_sweep(Redis.from_url(settings.redis_url), as_of)
    print(f"Queued sweep job {job_id}")


if __name__ == "__main__":
    main()
