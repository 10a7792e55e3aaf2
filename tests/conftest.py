import sys
from pathlib import Path

import pytest

# (1) Add repository root to sys.path so that `scripts.run` is importable.
#     The package itself lives in src/ (see pytest pythonpath in pyproject.toml).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture()
def sample_csvs(tmp_path: Path) -> dict[str, Path]:
    """
    @brief
    Writes a small three-file dataset with one defect of each fixable kind.

    @details
    C1 has priority 7 and plain-text attributes, C2 references TX and T99,
    W1 has two slots but MaxLoadPerPhase 5, T2 has duration 0.
    """
    files = {
        "requesters.csv": (
            "ClientID,Name,PriorityLevel,RequestedWorkItemIDs,GroupTag,AttributesText\n"
            'C1,Acme,7,"T1, T2",GroupA,hello world\n'
            'C2,Globex,3,"T1, TX, T99",GroupB,"{""budget"": 5}"\n'
        ),
        "resources.csv": (
            "WorkerID,Name,Skills,AvailableSlots,MaxLoadPerPhase,GroupTag,QualificationLevel\n"
            'W1,Ann,"python, sql","[1,2]",5,GroupA,3\n'
            'W2,Bob,ml,1-3,2,GroupB,4\n'
        ),
        "workitems.csv": (
            "TaskID,Name,Category,Duration,RequiredSkills,PreferredPhases,MaxConcurrent\n"
            'T1,Ingest,ETL,2,python,"[1,2]",1\n'
            'T2,Train,ML,0,"ml, sql",2-4,2\n'
        ),
    }
    paths = {}
    for name, text in files.items():
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        paths[name.split(".")[0]] = path
    return paths
