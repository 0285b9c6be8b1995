"""
处方更新守卫（发药）

规则：
1. 只有 pharmacist 可以更新处方（先检查角色）
2. 只能改 fulfilled / fulfilled_datetime / fulfilled_by，其他字段改了就拒绝
3. fulfilled 从 false 变 true 时，fulfilled_datetime 和 fulfilled_by 由这里写入（客户端传的值忽略）
4. true -> false 明确拒绝
5. 已发药的处方再发一次 -> AlreadyFulfilledError
6. 没有 false -> true 的变化时，fulfilled_datetime / fulfilled_by 不能单独改
"""
import uuid
from datetime import datetime

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from clinic_workflow.exceptions import AlreadyFulfilledError, ImmutableFieldError

from .models import Prescription
from .policies import PRESCRIPTION, UPDATE, authorize

_FK_FIELDS = {"diagnosis": "diagnosis_id", "created_by": "created_by_id", "fulfilled_by": "fulfilled_by_id"}


def _current_value(prescription, field):
    if field in _FK_FIELDS:
        return getattr(prescription, _FK_FIELDS[field])
    return getattr(prescription, field)


def _proposed_value(value):
    # 外键可以传对象也可以传 id
    return getattr(value, "pk", value)


def _same(current, proposed):
    if current is None or proposed is None:
        return current is None and proposed is None
    if isinstance(current, datetime):
        if isinstance(proposed, str):
            try:
                proposed = parse_datetime(proposed)
            except ValueError:
                return False
        return current == proposed
    if isinstance(current, uuid.UUID):
        # 大小写、有无连字符都视为同一个 id
        try:
            return current == uuid.UUID(str(proposed))
        except ValueError:
            return False
    return str(current) == str(proposed)


def guard_prescription_update(existing, changes, actor):
    """
    校验一次处方更新，返回真正要写入的字段 dict
    existing: 数据库里的 Prescription
    changes: 客户端提交的 {字段: 新值}
    actor: 执行更新的 Profile
    """
    authorize(actor, PRESCRIPTION, UPDATE)

    known = set(Prescription.IMMUTABLE_FIELDS) | set(Prescription.FULFILLMENT_FIELDS)
    unknown = sorted(set(changes) - known)
    if unknown:
        raise ImmutableFieldError(detail={"fields": unknown})

    changed_immutable = sorted(
        field for field in Prescription.IMMUTABLE_FIELDS
        if field in changes
        and not _same(_current_value(existing, field), _proposed_value(changes[field]))
    )
    if changed_immutable:
        raise ImmutableFieldError(detail={"fields": changed_immutable})

    if "fulfilled" not in changes or changes["fulfilled"] is None:
        wants_fulfilled = existing.fulfilled
    else:
        wants_fulfilled = bool(changes["fulfilled"])

    if existing.fulfilled and not wants_fulfilled:
        raise ImmutableFieldError(
            message="Fulfillment cannot be reverted",
            code="FULFILLMENT_IRREVERSIBLE",
        )

    if existing.fulfilled and changes.get("fulfilled"):
        raise AlreadyFulfilledError(
            detail={
                "prescription_id": str(existing.id),
                "fulfilled_datetime": existing.fulfilled_datetime.isoformat()
                if existing.fulfilled_datetime else None,
            },
        )

    if not existing.fulfilled and wants_fulfilled:
        return {
            "fulfilled": True,
            "fulfilled_datetime": timezone.now(),
            "fulfilled_by": actor,
        }

    stamp_changed = sorted(
        field for field in ("fulfilled_datetime", "fulfilled_by")
        if field in changes
        and not _same(_current_value(existing, field), _proposed_value(changes[field]))
    )
    if stamp_changed:
        raise ImmutableFieldError(
            message="Fulfillment stamp is only written when a prescription is fulfilled",
            detail={"fields": stamp_changed},
        )
    return {}
