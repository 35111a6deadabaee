import json

from typer.testing import CliRunner

from wbsgen.cli import app

runner = CliRunner()

BASE = ["generate", "--ticket", "TCK-1", "--developer", "Dev", "--ba", "Ann", "--start", "2024-01-01"]


def test_generate_prints_wbs_and_summary():
    result = runner.invoke(app, BASE + ["--effort", "golive=0.25"])
    assert result.exit_code == 0, result.output
    assert "Effort Summary" in result.output
    assert "Development Phase" in result.output
    assert "0.25 days" in result.output
    assert "5.25 days" in result.output  # total


def test_generate_missing_fields_fails():
    result = runner.invoke(app, ["generate", "--ticket", "TCK-1", "--start", "2024-01-01"])
    assert result.exit_code == 1
    assert "required fields" in result.output


def test_generate_json_with_edits():
    result = runner.invoke(
        app,
        BASE + ["--effort", "design=0.5", "--effort", "coding=0.5", "--percent", "design=100%", "--json"],
    )
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)

    tasks = {t["id"]: t for t in data["tasks"]}
    assert tasks["design"]["end_date"] == "2024-01-01"
    assert tasks["coding"]["start_date"] == "2024-01-01"
    assert tasks["coding"]["end_date"] == "2024-01-01"
    assert tasks["unittest"]["start_date"] == "2024-01-02"
    assert tasks["design"]["percent_complete"] == "100%"
    assert data["summary"]["total"] == 5.0


def test_generate_unknown_task_fails():
    result = runner.invoke(app, BASE + ["--effort", "nope=2"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_generate_bad_assignment_fails():
    result = runner.invoke(app, BASE + ["--effort", "coding"])
    assert result.exit_code == 1


def test_generate_exports(tmp_path):
    xlsx = tmp_path / "out.xlsx"
    csv_path = tmp_path / "out.csv"
    result = runner.invoke(app, BASE + ["--xlsx", str(xlsx), "--csv", str(csv_path)])
    assert result.exit_code == 0, result.output
    assert xlsx.exists()
    assert csv_path.exists()


def test_schedule_reports_unschedulable(tmp_path):
    f = tmp_path / "tasks.json"
    f.write_text(json.dumps([
        {"id": "a", "name": "A", "effort": 2, "start_date": "2024-01-05"},
        {"id": "b", "name": "B", "effort": 1, "dependencies": ["a"]},
        {"id": "c", "name": "C", "dependencies": ["missing"]},
    ]))

    result = runner.invoke(app, ["schedule", str(f), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    tasks = {t["id"]: t for t in data["tasks"]}
    assert tasks["a"]["end_date"] == "2024-01-08"
    assert tasks["b"]["start_date"] == "2024-01-09"
    assert tasks["c"]["end_date"] is None
    assert list(data["unschedulable"]) == ["c"]


def test_schedule_table_lists_reasons(tmp_path):
    f = tmp_path / "tasks.json"
    f.write_text(json.dumps({"tasks": [{"id": "x", "name": "X", "dependencies": ["y"]}]}))

    result = runner.invoke(app, ["schedule", str(f)])
    assert result.exit_code == 0, result.output
    assert "could not be scheduled" in result.output


def test_schedule_bad_file(tmp_path):
    f = tmp_path / "tasks.json"
    f.write_text("not json")
    result = runner.invoke(app, ["schedule", str(f)])
    assert result.exit_code == 1


def test_schedule_clamps_file_efforts(tmp_path):
    f = tmp_path / "tasks.json"
    # json accepts the bare Infinity literal
    f.write_text(
        '[{"id": "a", "name": "A", "effort": -0.5, "start_date": "2024-01-02"},'
        ' {"id": "b", "name": "B", "effort": 0, "dependencies": ["a"]},'
        ' {"id": "c", "name": "C", "effort": Infinity, "dependencies": ["b"]}]'
    )

    result = runner.invoke(app, ["schedule", str(f), "--json"])
    assert result.exit_code == 0, result.output
    tasks = {t["id"]: t for t in json.loads(result.stdout)["tasks"]}
    assert [tasks[tid]["effort"] for tid in "abc"] == [0.1, 0.1, 0.1]
    assert tasks["a"]["end_date"] == "2024-01-02"
    assert tasks["a"]["remaining_capacity_at_end"] == 0.9
    assert tasks["c"]["end_date"] == "2024-01-02"


def test_schedule_rejects_string_dependencies(tmp_path):
    f = tmp_path / "tasks.json"
    f.write_text(json.dumps([{"id": "x", "name": "X", "dependencies": "design"}]))
    result = runner.invoke(app, ["schedule", str(f)])
    assert result.exit_code == 1
    assert "must be a list" in result.output
