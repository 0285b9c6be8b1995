"""
权限策略：一张声明式的表 (table, operation) -> 允许的角色
所有写操作（insert / update）在入库之前统一查这张表，读操作对所有已登录角色开放

    table       select      insert               update
    patient     全部角色    operations, doctor   -
    checkup     全部角色    operations, doctor   -
    vital_signs 全部角色    operations, doctor   -
    diagnosis   全部角色    doctor               -
    prescription 全部角色   doctor               pharmacist
    profile     全部角色    -                    -
"""
import logging
from typing import Dict, FrozenSet, Tuple

from clinic_workflow.exceptions import AuthorizationError

from .metrics import AUTHORIZATION_DENIED
from .models import ROLE_CHOICES, ROLE_DOCTOR, ROLE_OPERATIONS, ROLE_PHARMACIST

logger = logging.getLogger(__name__)

SELECT = 'select'
INSERT = 'insert'
UPDATE = 'update'

PATIENT = 'patient'
CHECKUP = 'checkup'
VITAL_SIGNS = 'vital_signs'
DIAGNOSIS = 'diagnosis'
PRESCRIPTION = 'prescription'
PROFILE = 'profile'

ALL_ROLES: FrozenSet[str] = frozenset(role for role, _ in ROLE_CHOICES)
_FRONT_DESK: FrozenSet[str] = frozenset({ROLE_OPERATIONS, ROLE_DOCTOR})
_DOCTOR_ONLY: FrozenSet[str] = frozenset({ROLE_DOCTOR})
_PHARMACIST_ONLY: FrozenSet[str] = frozenset({ROLE_PHARMACIST})

# 没有出现在表里的 (table, operation) 一律拒绝
POLICY_TABLE: Dict[Tuple[str, str], FrozenSet[str]] = {
    (PATIENT, SELECT): ALL_ROLES,
    (PATIENT, INSERT): _FRONT_DESK,
    (CHECKUP, SELECT): ALL_ROLES,
    (CHECKUP, INSERT): _FRONT_DESK,
    (VITAL_SIGNS, SELECT): ALL_ROLES,
    (VITAL_SIGNS, INSERT): _FRONT_DESK,
    (DIAGNOSIS, SELECT): ALL_ROLES,
    (DIAGNOSIS, INSERT): _DOCTOR_ONLY,
    (PRESCRIPTION, SELECT): ALL_ROLES,
    (PRESCRIPTION, INSERT): _DOCTOR_ONLY,
    (PRESCRIPTION, UPDATE): _PHARMACIST_ONLY,
    (PROFILE, SELECT): ALL_ROLES,
}


def allowed_roles(table: str, operation: str) -> FrozenSet[str]:
    return POLICY_TABLE.get((table, operation), frozenset())


def is_allowed(role: str | None, table: str, operation: str) -> bool:
    """纯函数：角色是否可以对该表执行该操作"""
    if not role:
        return False
    return role in allowed_roles(table, operation)


def authorize(actor, table: str, operation: str) -> None:
    """
    检查 actor（Profile）是否有权限，没有则抛出 AuthorizationError (403)
    必须在任何写操作之前调用
    """
    role = getattr(actor, 'role', None)
    if is_allowed(role, table, operation):
        return

    AUTHORIZATION_DENIED.labels(table=table, operation=operation).inc()
    logger.warning(
        "Denied %s on %s for actor %s (role=%s)",
        operation, table, getattr(actor, 'id', None), role,
    )
    raise AuthorizationError(
        message=f"Role '{role}' is not permitted to {operation} {table}",
        detail={
            "table": table,
            "operation": operation,
            "role": role,
            "allowed_roles": sorted(allowed_roles(table, operation)),
        },
    )
