"""
患者状态流转：registered -> checked -> diagnosed -> prescribed

- derive_status 是纯函数：只看传进来的对象，不查数据库
- advance_patient_status 在插入 checkup / diagnosis / prescription 的同一个事务里调用，
  用条件 UPDATE（WHERE status = 旧状态）写回，并发时不会跳级也不会倒退
- 状态只前进不后退：下游记录被级联删除时状态保持不变
"""
import logging

from .metrics import STATUS_TRANSITION, STATUS_TRANSITION_NOOP
from .models import (
    STATUS_CHECKED,
    STATUS_CHOICES,
    STATUS_DIAGNOSED,
    STATUS_PRESCRIBED,
    STATUS_REGISTERED,
    Patient,
)

logger = logging.getLogger(__name__)

STATUS_ORDER = tuple(value for value, _ in STATUS_CHOICES)


def status_rank(status: str) -> int:
    return STATUS_ORDER.index(status)


def reached_stage(checkup=None, diagnosis=None, prescription=None) -> str:
    """传入的记录里最远的那一级"""
    if prescription is not None:
        return STATUS_PRESCRIBED
    if diagnosis is not None:
        return STATUS_DIAGNOSED
    if checkup is not None:
        return STATUS_CHECKED
    return STATUS_REGISTERED


def derive_status(patient, checkup=None, diagnosis=None, prescription=None) -> str:
    """
    根据最新的下游记录推导患者状态
    只有当记录对应的阶段恰好是当前状态的下一步时才前进一步，否则保持原状态（不报错）
    """
    current = patient.status
    candidate = reached_stage(checkup, diagnosis, prescription)
    if status_rank(candidate) == status_rank(current) + 1:
        return candidate
    return current


def advance_patient_status(patient, *, table, checkup=None, diagnosis=None, prescription=None):
    """
    在调用方的事务里推进患者状态
    返回推进后的状态；没推进就返回当前状态
    """
    patient.refresh_from_db(fields=['status'])
    previous = patient.status
    target = derive_status(patient, checkup=checkup, diagnosis=diagnosis, prescription=prescription)

    if target == previous:
        STATUS_TRANSITION_NOOP.labels(table=table).inc()
        logger.info("Patient %s stays %s after %s insert", patient.id, previous, table)
        return previous

    # 条件更新：只有状态仍然是 previous 时才写，相当于 compare-and-set
    updated = Patient.objects.filter(pk=patient.pk, status=previous).update(status=target)
    if not updated:
        patient.refresh_from_db(fields=['status'])
        STATUS_TRANSITION_NOOP.labels(table=table).inc()
        logger.info(
            "Patient %s moved to %s concurrently, %s insert left it unchanged",
            patient.id, patient.status, table,
        )
        return patient.status

    patient.status = target
    STATUS_TRANSITION.labels(from_status=previous, to_status=target).inc()
    logger.info("Patient %s: %s -> %s", patient.id, previous, target)
    return target
