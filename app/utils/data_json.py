"""
data.json export for the static dashboard.

The static dashboard reads its history from a single JSON file of the form
{"repo": ..., "updated_at": ..., "entries": [{date, branch, total_tests, skipped_count}]}.
A CI job scans a checkout and merges the day's counts into that file.
"""
import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from app.constants import DEFAULT_REPO_IDENTIFIER

logger = logging.getLogger(__name__)


def load_data_json(path: Path, repo: str = DEFAULT_REPO_IDENTIFIER) -> Dict[str, Any]:
    """Read the dashboard data file, starting fresh when it is missing or corrupted."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.info(f"{path} not found, creating a new data file")
        return {"repo": repo, "updated_at": "", "entries": []}
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Unreadable data file {path} ({e}), starting fresh")
        return {"repo": repo, "updated_at": "", "entries": []}

    if not isinstance(data, dict) or not isinstance(data.get("entries"), list):
        logger.warning(f"Unexpected layout in {path}, starting fresh")
        return {"repo": repo, "updated_at": "", "entries": []}
    return data


def merge_entry(
    data_json_path: Union[str, Path],
    day: date,
    branch: str,
    total_tests: int,
    skipped_count: int,
    repo: str = DEFAULT_REPO_IDENTIFIER,
    now: Optional[datetime] = None,
) -> int:
    """
    Replace or append the entry for (day, branch) and rewrite the file.

    Entries are kept sorted by date.

    Returns:
        Number of entries in the file after the merge
    """
    path = Path(data_json_path)
    data = load_data_json(path, repo=repo)

    entry = {
        "date": day.isoformat(),
        "branch": branch,
        "total_tests": total_tests,
        "skipped_count": skipped_count,
    }
    entries = data["entries"]
    existing = next(
        (i for i, e in enumerate(entries) if e.get("date") == entry["date"] and e.get("branch") == branch),
        None,
    )
    if existing is None:
        entries.append(entry)
    else:
        entries[existing] = entry
    # Stable sort keeps branch order within a day
    entries.sort(key=lambda e: e.get("date", ""))

    data["entries"] = entries
    data["updated_at"] = (now or datetime.now(timezone.utc)).isoformat()

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return len(entries)
