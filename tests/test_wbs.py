import pytest

from wbsgen.models import MIN_EFFORT, ProjectForm, clamp_effort
from wbsgen.scheduler import propagate
from wbsgen.wbs import (
    effort_summary,
    generate_schedule,
    generate_wbs,
    set_percent_complete,
    set_resource_name,
    update_effort,
    wbs_rows,
)


def _dates(tasks):
    return {t.id: (t.start_date, t.end_date) for t in tasks}


def test_template_chain_six_business_days():
    tasks = generate_schedule("2024-01-01", developer="Dev", ba="Ann")

    assert [t.id for t in tasks] == [
        "design", "coding", "unittest", "functiontest", "uatsupport", "golive",
    ]
    assert _dates(tasks) == {
        "design": ("2024-01-01", "2024-01-01"),
        "coding": ("2024-01-02", "2024-01-02"),
        "unittest": ("2024-01-03", "2024-01-03"),
        "functiontest": ("2024-01-04", "2024-01-04"),
        "uatsupport": ("2024-01-05", "2024-01-05"),
        "golive": ("2024-01-08", "2024-01-08"),
    }
    assert all(t.remaining_capacity_at_end == 0 for t in tasks)
    assert [t.resource_name for t in tasks] == ["Ann", "Dev", "Dev", "Ann", "", ""]
    assert tasks[1].dependencies == ["design"]


def test_generate_wbs_requires_all_fields():
    with pytest.raises(ValueError, match="Developer, BA"):
        generate_wbs(ProjectForm(ticket_id="TCK-1", start_date="2024-01-01"))


def test_generate_wbs_uses_form():
    tasks = generate_wbs(ProjectForm("TCK-1", "Dev", "Ann", "2024-01-01"))
    assert tasks[0].start_date == "2024-01-01"
    assert tasks[0].resource_name == "Ann"


@pytest.mark.parametrize(
    "raw, expected",
    [(2.5, 2.5), ("1.5", 1.5), (0, MIN_EFFORT), (-3, MIN_EFFORT), ("abc", MIN_EFFORT),
     (None, MIN_EFFORT), (float("nan"), MIN_EFFORT), (float("inf"), MIN_EFFORT)],
)
def test_clamp_effort(raw, expected):
    assert clamp_effort(raw) == expected


def test_update_effort_reschedules_everything():
    tasks = generate_schedule("2024-01-01")
    updated = update_effort(tasks, "coding", 2.5)

    dates = _dates(updated)
    # coding: Tue, Wed and half of Thursday
    assert dates["coding"] == ("2024-01-02", "2024-01-04")
    # unit test takes the other half of Thursday and half of Friday
    assert dates["unittest"] == ("2024-01-04", "2024-01-05")
    assert dates["golive"] == ("2024-01-09", "2024-01-10")

    # original set untouched
    assert _dates(tasks)["golive"] == ("2024-01-08", "2024-01-08")


def test_update_effort_clamps_invalid_values():
    updated = update_effort(generate_schedule("2024-01-01"), "design", -1)
    assert updated[0].effort == MIN_EFFORT
    assert updated[0].remaining_capacity_at_end == pytest.approx(0.9)
    # coding shares Monday with design
    assert updated[1].start_date == "2024-01-01"


def test_update_effort_unknown_task_keeps_schedule():
    tasks = generate_schedule("2024-01-01")
    assert _dates(update_effort(tasks, "nope", 3)) == _dates(tasks)


def test_update_effort_result_is_stable():
    tasks = update_effort(generate_schedule("2024-01-03"), "unittest", 0.7)
    assert _dates(propagate(tasks)) == _dates(tasks)


def test_text_fields_do_not_reschedule():
    tasks = generate_schedule("2024-01-01")
    tasks = set_percent_complete(tasks, "design", "100%")
    tasks = set_resource_name(tasks, "golive", "Ops")
    assert tasks[0].percent_complete == "100%"
    assert tasks[-1].resource_name == "Ops"

    with pytest.raises(ValueError):
        set_percent_complete(tasks, "nope", "10%")


def test_effort_summary_partition():
    tasks = generate_schedule("2024-01-01")
    for tid, effort in [("design", 0.5), ("coding", 3), ("uatsupport", 2.5), ("golive", 0.3)]:
        tasks = update_effort(tasks, tid, effort)

    s = effort_summary(tasks)
    assert s.development_phase == pytest.approx(0.5 + 3 + 1 + 1)
    assert s.uat_support == 2.5
    assert s.go_live == 0.3
    assert s.development_phase + s.uat_support + s.go_live == s.total
    assert s.total == pytest.approx(sum(t.effort for t in tasks))


def test_wbs_rows_layout():
    tasks = set_percent_complete(generate_schedule("2024-01-01"), "coding", "50%")
    rows = wbs_rows("TCK-1", tasks)

    assert [r.task_name for r in rows] == [
        "TCK-1",
        "\tI.Update logic report",
        "\t\tTask Design",
        "\t\tTask Coding",
        "\t\tTask Unit Test",
        "\t\tTask Function Test",
        "\tII.UAT & Support",
        "\t\tTask UAT & Support",
        "\tIII.Go Live",
        "\t\tTask Conduct Go-live",
    ]
    assert [r.bold for r in rows].count(True) == 4
    assert rows[1].effort == 4
    assert rows[2].percent_complete == "0%"
    assert rows[3].percent_complete == "50%"
    assert rows[-1].end_date == "2024-01-08"
    assert wbs_rows("", tasks)[0].task_name == "WBS"
