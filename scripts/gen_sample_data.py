# scripts/gen_sample_data.py
from __future__ import annotations

import csv
import random
from pathlib import Path

"""
Sample dataset generator (single run → three CSV files).

Design:
- Parameters are hard-coded as constants below (no CLI args).
- Generates requesters, resources and work items with consistent ids
  (C001…, W001…, T1…), then seeds a fixed set of defects so every finding
  category shows up in validation:
    * requester with PriorityLevel 7
    * requester referencing "TX" and "T99"
    * requester with plain-text AttributesText and one with broken JSON
    * duplicate requester id
    * resource with more MaxLoadPerPhase than AvailableSlots
    * resource with no AvailableSlots
    * work item with Duration 0 and one requiring a skill nobody offers
- List columns use the upload conventions: "a, b" for strings, "[1,2]" or
  "1-3" for integers.
"""

# =========================
# CONFIG: EDIT THESE
# =========================
N_REQUESTERS: int = 12
N_RESOURCES: int = 8
N_WORK_ITEMS: int = 15
OUTPUT_DIR: str = "data/input"
SKILLS: tuple[str, ...] = ("python", "sql", "ml", "design", "devops", "testing")
GROUPS: tuple[str, ...] = ("GroupA", "GroupB", "GroupC")
CATEGORIES: tuple[str, ...] = ("ETL", "Analytics", "ML", "QA")
RANDOM_SEED: int = 42
# =========================

REQUESTER_HEADER = [
    "ClientID", "Name", "PriorityLevel", "RequestedWorkItemIDs", "GroupTag", "AttributesText"
]
RESOURCE_HEADER = [
    "WorkerID", "Name", "Skills", "AvailableSlots", "MaxLoadPerPhase", "GroupTag",
    "QualificationLevel",
]
WORK_ITEM_HEADER = [
    "TaskID", "Name", "Category", "Duration", "RequiredSkills", "PreferredPhases",
    "MaxConcurrent",
]


def _work_items(rng: random.Random) -> list[list[object]]:
    rows: list[list[object]] = []
    for i in range(1, N_WORK_ITEMS + 1):
        start = rng.randint(1, 4)
        rows.append(
            [
                f"T{i}",
                f"Work Item {i}",
                rng.choice(CATEGORIES),
                rng.randint(1, 4),
                ", ".join(rng.sample(SKILLS, k=rng.randint(1, 2))),
                f"{start}-{start + rng.randint(0, 2)}",
                rng.randint(1, 3),
            ]
        )
    # (1) Seeded defects
    rows[0][3] = 0  # duration-out-of-range
    rows[-1][4] = "quantum"  # skill-coverage-gap
    return rows


def _resources(rng: random.Random) -> list[list[object]]:
    rows: list[list[object]] = []
    for i in range(1, N_RESOURCES + 1):
        slots = sorted(rng.sample(range(1, 7), k=rng.randint(2, 4)))
        rows.append(
            [
                f"W{i:03d}",
                f"Resource {i}",
                ", ".join(rng.sample(SKILLS, k=3)),
                "[" + ",".join(str(s) for s in slots) + "]",
                rng.randint(1, len(slots)),
                rng.choice(GROUPS),
                rng.randint(1, 5),
            ]
        )
    # (2) Seeded defects
    rows[0][3], rows[0][4] = "[1,2]", 5  # resource-overload
    rows[1][3] = ""  # missing available slots
    return rows


def _requesters(rng: random.Random) -> list[list[object]]:
    rows: list[list[object]] = []
    for i in range(1, N_REQUESTERS + 1):
        refs = rng.sample(range(1, N_WORK_ITEMS + 1), k=rng.randint(1, 3))
        rows.append(
            [
                f"C{i:03d}",
                f"Requester {i}",
                rng.randint(1, 5),
                ", ".join(f"T{r}" for r in refs),
                rng.choice(GROUPS),
                '{"budget": %d}' % rng.randint(1000, 9000),
            ]
        )
    # (3) Seeded defects
    rows[0][2] = 7  # priority-out-of-range
    rows[1][3] = "T1, TX, T99"  # unknown-reference
    rows[2][5] = "prefers mornings"  # plain text
    rows[3][5] = '{"budget": 100'  # broken JSON
    rows[-1][0] = rows[-2][0]  # duplicate-id
    return rows


def _write(path: Path, header: list[str], rows: list[list[object]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)
    print(f"Wrote {len(rows)} row(s) → {path}")


def main() -> None:
    rng = random.Random(RANDOM_SEED)
    out = Path(OUTPUT_DIR)
    _write(out / "requesters.csv", REQUESTER_HEADER, _requesters(rng))
    _write(out / "resources.csv", RESOURCE_HEADER, _resources(rng))
    _write(out / "workitems.csv", WORK_ITEM_HEADER, _work_items(rng))


if __name__ == "__main__":
    main()
