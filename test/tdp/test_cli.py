import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from TDPOrchestrator.cli import build_parser, main


def _gzoltar(root: Path, tests: str, matrix: str) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "spectra.csv").write_text("name\nA\nB\n", encoding="utf-8")
    (root / "tests.csv").write_text("name,outcome\n" + tests, encoding="utf-8")
    (root / "matrix.txt").write_text(matrix, encoding="utf-8")
    return root


def _common(tmp_path: Path):
    return ["--work-dir", str(tmp_path / "runs"), "--log-dir", str(tmp_path / "logs")]


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.gzoltar_dir == ".gzoltar/sfl/txt"
    assert args.max_iterations == 10
    assert args.max_diagnoses == 20
    assert args.convergence_threshold == 0.95
    assert args.oracle == "recorded"


def test_cli_run_writes_artifacts(tmp_path: Path):
    data = _gzoltar(tmp_path / "txt", "t_fail,FAIL\nt_a,FAIL\n", "1 1 -\n1 0 -\n")

    code = main([str(data), "--initial", "1", *_common(tmp_path)])

    assert code == 0
    (run_dir,) = list((tmp_path / "runs").iterdir())
    outcome = json.loads((run_dir / "outcome.json").read_text(encoding="utf-8"))
    assert outcome["status"] == "converged"
    assert outcome["diagnosis"]["components"] == ["A"]

    ranking = json.loads((run_dir / "ranking.json").read_text(encoding="utf-8"))
    assert [r["element"] for r in ranking["ochiai"]] == ["A", "B"]
    assert ranking["goodness"] == {"A": 0.01, "B": 0.01}

    config = json.loads((run_dir / "config.json").read_text(encoding="utf-8"))
    assert config["oracle"] == "recorded"

    events = (run_dir / "events.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(events[0])["event"] == "run_meta"
    assert json.loads(events[-1])["event"] == "run_finished"


def test_cli_without_failures_exits_one(tmp_path: Path):
    data = _gzoltar(tmp_path / "txt", "t1,PASS\nt2,PASS\n", "1 0 +\n0 1 +\n")
    assert main([str(data), *_common(tmp_path)]) == 1


def test_cli_reports_configuration_errors(tmp_path: Path):
    assert main([str(tmp_path / "missing"), *_common(tmp_path)]) == 2

    data = _gzoltar(tmp_path / "txt", "t1,FAIL\n", "1 1 -\n")
    assert main([str(data), "--oracle", "scripted", *_common(tmp_path)]) == 2
    assert main([str(data), "--max-iterations", "0", *_common(tmp_path)]) == 2
    assert main([str(data), "--initial", "nope", *_common(tmp_path)]) == 2
    assert main([str(data), "--test-root", str(tmp_path / "no-tests"), *_common(tmp_path)]) == 2
