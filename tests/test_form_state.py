import asyncio
import datetime

import pytest

from farmlog.errors import MissingOwnerError, PersistenceError, ValidationFailed
from farmlog.form_state import CREATED_MESSAGE, QUICK_TEMPLATES, UPDATED_MESSAGE, WorkLogForm
from farmlog.schemas import WorkLogDraft
from farmlog.validation import WORK_HOURS_REQUIRED, WORKERS_REQUIRED


def test_new_form_has_defaults():
    form = WorkLogForm()
    assert form.draft.date == datetime.date.today().isoformat()
    assert form.draft.workers == []
    assert form.draft.fertilizer_unit == "kg"
    assert form.draft.pesticide_unit == "L"
    assert (form.error, form.message, form.loading) == ("", "", False)


def test_apply_change_accepts_attribute_and_wire_names():
    form = WorkLogForm()
    form.apply_change("fieldId", "F1")
    form.apply_change("work_hours", "2.5")
    assert form.draft.field_id == "F1"
    assert form.draft.work_hours == "2.5"


def test_apply_change_rejects_unknown_field():
    with pytest.raises(KeyError):
        WorkLogForm().apply_change("colour", "red")


def test_apply_worker_selection_replaces_list():
    form = WorkLogForm()
    form.apply_worker_selection(["U1", "U2"])
    form.apply_worker_selection(("U3",))
    assert form.draft.workers == ["U3"]


def test_template_merge_keeps_unrelated_fields():
    form = WorkLogForm()
    form.apply_change("fertilizerId", "FZ1")
    form.apply_change("fieldId", "F1")
    form.apply_template({"workType": "収穫", "workHours": "4"})
    assert form.draft.work_type == "収穫"
    assert form.draft.work_hours == "4"
    assert form.draft.fertilizer_id == "FZ1"
    assert form.draft.field_id == "F1"


def test_template_may_overwrite_work_type_and_ignores_unknown_keys():
    form = WorkLogForm(WorkLogDraft(work_type="施肥", details="old"))
    form.apply_template({"workType": "防除", "details": "病害虫防除作業", "icon": "🚿"})
    assert form.draft.work_type == "防除"
    assert form.draft.details == "病害虫防除作業"


def test_quick_templates_apply_cleanly():
    for template in QUICK_TEMPLATES:
        form = WorkLogForm()
        form.apply_template(template.data)
        assert form.draft.work_type == template.data["workType"]


def test_reset_clears_draft_and_messages():
    form = WorkLogForm()
    form.apply_change("details", "x")
    form.error = "boom"
    form.message = "ok"
    form.reset()
    assert form.draft.details == ""
    assert (form.error, form.message) == ("", "")


def test_submit_blocks_on_validation_and_keeps_draft(repo, owner, reference):
    form = WorkLogForm(WorkLogDraft(field_id="F1", work_type="除草", work_hours="0"))
    before = form.draft.model_dump()
    outcome = asyncio.run(form.submit(repo, owner, reference))
    assert not outcome.ok
    assert isinstance(outcome.failure, ValidationFailed)
    assert form.error == f"{WORKERS_REQUIRED}, {WORK_HOURS_REQUIRED}"
    assert form.draft.model_dump() == before
    assert asyncio.run(repo.query("workLogs")) == []


def test_submit_without_owner(flaky_repo, reference, fertilizing_draft):
    form = WorkLogForm(fertilizing_draft)
    outcome = asyncio.run(form.submit(flaky_repo, None, reference))
    assert isinstance(outcome.failure, MissingOwnerError)
    assert form.error == "ユーザー認証が確認できません。"
    assert flaky_repo.writes == []


def test_submit_create_resets_draft(repo, owner, reference, fertilizing_draft):
    form = WorkLogForm(fertilizing_draft)
    outcome = asyncio.run(form.submit(repo, owner, reference))
    assert outcome.ok and outcome.work_log_id
    assert form.message == CREATED_MESSAGE
    assert form.draft.fertilizer_id == ""
    assert not form.loading


def test_submit_update_keeps_draft(repo, owner, reference, fertilizing_draft, seeding_draft):
    created = asyncio.run(WorkLogForm(fertilizing_draft).submit(repo, owner, reference))
    form = WorkLogForm(seeding_draft)
    outcome = asyncio.run(form.submit(repo, owner, reference, edit_id=created.work_log_id))
    assert outcome.work_log_id == created.work_log_id
    assert form.message == UPDATED_MESSAGE
    assert form.draft.seed_id == "S1"


def test_submit_persistence_failure_becomes_one_message(flaky_repo, owner, reference, fertilizing_draft):
    flaky_repo.failures.add(("insert", "workLogs"))
    form = WorkLogForm(fertilizing_draft)
    outcome = asyncio.run(form.submit(flaky_repo, owner, reference))
    assert isinstance(outcome.failure, PersistenceError)
    assert form.error.startswith("作業日誌の保存中にエラーが発生しました: ")
    assert form.draft.fertilizer_id == "FZ1"
    assert not form.loading
