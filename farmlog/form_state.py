# farmlog/form_state.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .coordinator import SaveMode, save_work_log
from .errors import MissingOwnerError, ValidationFailed, WorkLogError
from .schemas import OwnerContext, QuickTemplate, ReferenceData, WorkLogDraft, draft_field_name
from .validation import validate_draft

logger = logging.getLogger(__name__)

CREATED_MESSAGE = "作業日誌が正常に登録されました"
UPDATED_MESSAGE = "作業日誌が正常に更新されました"

QUICK_TEMPLATES = [
    QuickTemplate(name="朝の作業", icon="🌅",
                  data={"workType": "除草", "workHours": "2", "details": "朝の定期除草作業"}),
    QuickTemplate(name="収穫作業", icon="🌾",
                  data={"workType": "収穫", "workHours": "4", "details": "収穫作業"}),
    QuickTemplate(name="施肥作業", icon="🌱",
                  data={"workType": "施肥", "workHours": "1.5", "details": "定期施肥作業"}),
    QuickTemplate(name="防除作業", icon="🚿",
                  data={"workType": "防除", "workHours": "2", "details": "病害虫防除作業"}),
    QuickTemplate(name="播種作業", icon="🌿",
                  data={"workType": "播種", "workHours": "3", "details": "播種作業"}),
]


@dataclass
class SubmitOutcome:
    work_log_id: Optional[str] = None
    error: str = ""
    failure: Optional[WorkLogError] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class WorkLogForm:
    """
    Draft of one work-log plus the form's error/message/loading state.

    Edits go through ``apply_*``; ``submit`` is the boundary where every
    failure becomes a single message for the user.
    """

    def __init__(self, draft: Optional[WorkLogDraft] = None):
        self.draft = draft if draft is not None else WorkLogDraft()
        self.error = ""
        self.message = ""
        self.loading = False

    def apply_change(self, field: str, value: Any) -> None:
        name = draft_field_name(field)
        if name is None:
            raise KeyError(field)
        setattr(self.draft, name, value)

    def apply_worker_selection(self, ids: Iterable[str]) -> None:
        self.draft.workers = list(ids)

    def apply_template(self, partial: Dict[str, Any]) -> None:
        """Shallow merge: fields named in the template win, the rest stay."""
        updates = {}
        for key, value in partial.items():
            name = draft_field_name(key)
            if name is None:
                logger.warning("ignoring unknown template field %r", key)
                continue
            updates[name] = value
        merged = self.draft.model_dump()
        merged.update(updates)
        self.draft = WorkLogDraft.model_validate(merged)

    def validate(self, fields=None, users=None) -> List[str]:
        # fields/users are accepted for the form's call shape; rules only read the draft
        return validate_draft(self.draft)

    def reset(self) -> None:
        self.draft = WorkLogDraft()
        self.error = ""
        self.message = ""

    async def submit(
        self,
        repository,
        owner: Optional[OwnerContext],
        reference: ReferenceData,
        edit_id: Optional[str] = None,
    ) -> SubmitOutcome:
        self.loading = True
        self.error = ""
        self.message = ""
        try:
            if owner is None or not owner.uid:
                raise MissingOwnerError()
            violations = self.validate(reference.fields, reference.users)
            if violations:
                raise ValidationFailed(violations)
            if edit_id:
                work_log_id = await save_work_log(
                    repository, self.draft, owner, reference, SaveMode.UPDATE, edit_id
                )
                self.message = UPDATED_MESSAGE
            else:
                work_log_id = await save_work_log(repository, self.draft, owner, reference)
                self.reset()
                self.message = CREATED_MESSAGE
            return SubmitOutcome(work_log_id=work_log_id)
        except WorkLogError as e:
            self.error = e.message
            return SubmitOutcome(error=e.message, failure=e)
        finally:
            self.loading = False
