# farmlog/validation.py
from typing import List

from .coercion import is_positive
from .schemas import WorkLogDraft, WorkType

DATE_REQUIRED = "作業日は必須です"
FIELD_REQUIRED = "圃場の選択は必須です"
WORK_TYPE_REQUIRED = "作業内容の選択は必須です"
WORKERS_REQUIRED = "担当者の選択は必須です"
WORK_HOURS_REQUIRED = "作業時間は必須です（0より大きい値）"

FERTILIZER_REQUIRED = "施肥作業では使用肥料の選択は必須です"
FERTILIZER_AMOUNT_REQUIRED = "施肥作業では肥料使用量は必須です"
FERTILIZER_METHOD_REQUIRED = "施肥作業では施肥方法の選択は必須です"

SEED_REQUIRED = "播種作業では種子・苗の選択は必須です"
SEED_METHOD_REQUIRED = "播種作業では播種方法の選択は必須です"

PESTICIDE_REQUIRED = "防除作業では使用農薬の選択は必須です"
TARGET_PEST_REQUIRED = "防除作業では対象病害虫の入力は必須です"
DILUTION_RATE_REQUIRED = "防除作業では希釈倍率は必須です"
PESTICIDE_AMOUNT_REQUIRED = "防除作業では散布量は必須です"
PESTICIDE_METHOD_REQUIRED = "防除作業では散布方法の選択は必須です"
WEATHER_REQUIRED = "防除作業では天候の選択は必須です"


def _fertilizing_violations(draft: WorkLogDraft) -> List[str]:
    errors = []
    if not draft.fertilizer_id:
        errors.append(FERTILIZER_REQUIRED)
    if not is_positive(draft.fertilizer_amount):
        errors.append(FERTILIZER_AMOUNT_REQUIRED)
    if not draft.fertilizer_method:
        errors.append(FERTILIZER_METHOD_REQUIRED)
    return errors


def _seeding_violations(draft: WorkLogDraft) -> List[str]:
    # seed amount is optional
    errors = []
    if not draft.seed_id:
        errors.append(SEED_REQUIRED)
    if not draft.seed_method:
        errors.append(SEED_METHOD_REQUIRED)
    return errors


def _pest_control_violations(draft: WorkLogDraft) -> List[str]:
    errors = []
    if not draft.pesticide_id:
        errors.append(PESTICIDE_REQUIRED)
    if not draft.target_pest:
        errors.append(TARGET_PEST_REQUIRED)
    if not is_positive(draft.dilution_rate):
        errors.append(DILUTION_RATE_REQUIRED)
    if not is_positive(draft.pesticide_amount):
        errors.append(PESTICIDE_AMOUNT_REQUIRED)
    if not draft.pesticide_method:
        errors.append(PESTICIDE_METHOD_REQUIRED)
    if not draft.weather:
        errors.append(WEATHER_REQUIRED)
    return errors


TYPE_RULES = {
    WorkType.FERTILIZING.value: _fertilizing_violations,
    WorkType.SEEDING.value: _seeding_violations,
    WorkType.PEST_CONTROL.value: _pest_control_violations,
}


def validate_draft(draft: WorkLogDraft) -> List[str]:
    """
    Every violated rule, in display order. Never stops at the first problem
    so the form can show them all at once.
    """
    errors = []
    if not draft.date:
        errors.append(DATE_REQUIRED)
    if not draft.field_id:
        errors.append(FIELD_REQUIRED)
    if not draft.work_type:
        errors.append(WORK_TYPE_REQUIRED)
    if not draft.workers:
        errors.append(WORKERS_REQUIRED)
    if not is_positive(draft.work_hours):
        errors.append(WORK_HOURS_REQUIRED)

    rule = TYPE_RULES.get(draft.work_type)
    if rule is not None:
        errors.extend(rule(draft))
    return errors
