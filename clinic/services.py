"""
业务逻辑：权限检查、校验、写数据库、推进患者状态

每个写操作都是一个 transaction.atomic() 单元：
权限 -> 校验 -> 上级记录存在性 -> 唯一性 -> 插入 -> 状态流转，要么全部成功要么全部回滚
actor 通过参数显式传入，不依赖全局的"当前用户"
"""
import logging
import uuid

from django.db import IntegrityError, transaction

from clinic_workflow.exceptions import AuthorizationError, NotFoundError, DuplicateError, ValidationError

from .fulfillment import guard_prescription_update
from .metrics import DUPLICATE_BLOCK, PRESCRIPTION_FULFILLED, RECORD_CREATED
from .models import ROLE_CHOICES, Checkup, Diagnosis, Patient, Prescription, Profile, VitalSigns
from .policies import (
    CHECKUP,
    DIAGNOSIS,
    INSERT,
    PATIENT,
    PRESCRIPTION,
    SELECT,
    UPDATE,
    VITAL_SIGNS,
    authorize,
)
from .serializers import (
    CHECKUP_OPTIONAL_FIELDS,
    PRESCRIPTION_OPTIONAL_FIELDS,
    VITAL_SIGNS_FIELDS,
    reject_unknown_fields,
    validate_checkup_data,
    validate_diagnosis_data,
    validate_patient_data,
    validate_prescription_data,
    validate_prescription_update,
    validate_vital_signs_data,
)
from .status import advance_patient_status

logger = logging.getLogger(__name__)


def _as_uuid(value, label):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(
            message=f"Invalid {label} id",
            code="INVALID_ID",
            detail={"field": label, "value": str(value)},
        )


def _get_or_404(queryset, pk, label, lock=False):
    pk = _as_uuid(pk, label)
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=pk)
    except queryset.model.DoesNotExist:
        raise NotFoundError(
            message=f"{label.capitalize()} not found",
            detail={label + "_id": str(pk)},
        )


def _duplicate(table, message, code, detail):
    DUPLICATE_BLOCK.labels(table=table).inc()
    logger.warning("%s (%s)", message, detail)
    return DuplicateError(message=message, code=code, detail=detail)


# ---------------------------------------------------------------------------
# Actor / Profile
# ---------------------------------------------------------------------------

def get_actor(actor_id):
    """
    actor_id -> Profile
    找不到对应 profile 说明不是已认证的 actor，按权限错误处理
    """
    if isinstance(actor_id, Profile):
        return actor_id
    if actor_id is None:
        raise AuthorizationError(
            message="Authentication required",
            code="NOT_AUTHENTICATED",
            http_status=401,
        )
    try:
        pk = uuid.UUID(str(actor_id))
    except ValueError:
        pk = None
    actor = Profile.objects.filter(pk=pk).first() if pk else None
    if actor is None:
        raise AuthorizationError(
            message="Unknown actor",
            code="UNKNOWN_ACTOR",
            detail={"actor_id": str(actor_id)},
            http_status=401,
        )
    return actor


def _validate_role(role):
    roles = [r for r, _ in ROLE_CHOICES]
    if role not in roles:
        raise ValidationError(
            message="数据格式校验失败",
            detail={"errors": [{"field": "role", "message": f"role 必须是 {', '.join(roles)} 之一"}]},
        )


def create_profile(role, user=None):
    """新建 actor；每个 Django 用户最多一个 profile"""
    _validate_role(role)
    if user is not None and Profile.objects.filter(user=user).exists():
        raise DuplicateError(
            message="User already has a profile",
            code="PROFILE_EXISTS",
            detail={"user_id": user.pk},
        )
    profile = Profile.objects.create(role=role, user=user)
    logger.info("Created profile %s with role %s", profile.id, role)
    return profile


def change_role(profile_id, role):
    """profile 创建后唯一可以修改的字段"""
    _validate_role(role)
    with transaction.atomic():
        profile = _get_or_404(Profile.objects.all(), profile_id, "profile", lock=True)
        previous = profile.role
        profile.role = role
        profile.save(update_fields=["role", "updated_at"])
    logger.info("Profile %s role %s -> %s", profile.id, previous, role)
    return profile


# ---------------------------------------------------------------------------
# 写操作
# ---------------------------------------------------------------------------

def create_patient(name, gender, age, actor_id):
    """登记患者，初始状态 registered"""
    actor = get_actor(actor_id)
    authorize(actor, PATIENT, INSERT)
    data = validate_patient_data({"name": name, "gender": gender, "age": age})

    with transaction.atomic():
        patient = Patient.objects.create(created_by=actor, **data)

    RECORD_CREATED.labels(table=PATIENT).inc()
    logger.info("Registered patient %s by %s", patient.id, actor.id)
    return patient


def create_checkup(patient_id, description, actor_id, **extra):
    """
    新建 checkup，患者 registered -> checked
    extra: chief_complaint / physical_examination / notes
    """
    actor = get_actor(actor_id)
    authorize(actor, CHECKUP, INSERT)
    reject_unknown_fields(extra, CHECKUP_OPTIONAL_FIELDS)
    payload = {"patient_id": patient_id, "checkup_description": description, **extra}
    data = validate_checkup_data(payload)

    try:
        with transaction.atomic():
            patient = _get_or_404(Patient.objects.all(), data.pop("patient_id"), "patient")
            checkup = Checkup.objects.create(patient=patient, created_by=actor, **data)
            advance_patient_status(patient, table=CHECKUP, checkup=checkup)
    except IntegrityError as exc:
        raise _duplicate(
            CHECKUP,
            "A checkup for this patient already exists at this time",
            "CHECKUP_DUPLICATE",
            {"patient_id": str(patient_id)},
        ) from exc

    RECORD_CREATED.labels(table=CHECKUP).inc()
    logger.info("Created checkup %s for patient %s by %s", checkup.id, patient.id, actor.id)
    return checkup


def record_vital_signs(checkup_id, actor_id, **vitals):
    """记录体征；不影响患者状态"""
    actor = get_actor(actor_id)
    authorize(actor, VITAL_SIGNS, INSERT)
    reject_unknown_fields(vitals, VITAL_SIGNS_FIELDS)
    data = validate_vital_signs_data({"checkup_id": checkup_id, **vitals})

    with transaction.atomic():
        checkup = _get_or_404(Checkup.objects.all(), data.pop("checkup_id"), "checkup")
        record = VitalSigns.objects.create(checkup=checkup, created_by=actor, **data)

    RECORD_CREATED.labels(table=VITAL_SIGNS).inc()
    logger.info("Recorded vital signs %s on checkup %s by %s", record.id, checkup.id, actor.id)
    return record


def _ensure_not_diagnosed(checkup):
    if Diagnosis.objects.filter(checkup=checkup).exists():
        raise _duplicate(
            DIAGNOSIS,
            "Checkup is already diagnosed",
            "ALREADY_DIAGNOSED",
            {"checkup_id": str(checkup.id)},
        )


def create_diagnosis(checkup_id, description, actor_id):
    """
    新建诊断（每个 checkup 最多一个），患者 checked -> diagnosed
    并发时唯一约束兜底：IntegrityError 转成 DuplicateError
    """
    actor = get_actor(actor_id)
    authorize(actor, DIAGNOSIS, INSERT)
    data = validate_diagnosis_data({"checkup_id": checkup_id, "diagnosis_description": description})

    try:
        with transaction.atomic():
            checkup = _get_or_404(
                Checkup.objects.select_related("patient"), data.pop("checkup_id"), "checkup",
            )
            _ensure_not_diagnosed(checkup)
            diagnosis = Diagnosis.objects.create(checkup=checkup, created_by=actor, **data)
            advance_patient_status(checkup.patient, table=DIAGNOSIS, checkup=checkup, diagnosis=diagnosis)
    except IntegrityError as exc:
        raise _duplicate(
            DIAGNOSIS,
            "Checkup is already diagnosed",
            "ALREADY_DIAGNOSED",
            {"checkup_id": str(checkup_id)},
        ) from exc

    RECORD_CREATED.labels(table=DIAGNOSIS).inc()
    logger.info("Created diagnosis %s on checkup %s by %s", diagnosis.id, checkup.id, actor.id)
    return diagnosis


def _ensure_not_prescribed(diagnosis):
    if Prescription.objects.filter(diagnosis=diagnosis).exists():
        raise _duplicate(
            PRESCRIPTION,
            "Diagnosis already has a prescription",
            "ALREADY_PRESCRIBED",
            {"diagnosis_id": str(diagnosis.id)},
        )


def create_prescription(diagnosis_id, details, actor_id, **medication):
    """
    新建处方（每个诊断最多一个），患者 diagnosed -> prescribed
    medication: dosage / frequency / duration / route / special_instructions
    """
    actor = get_actor(actor_id)
    authorize(actor, PRESCRIPTION, INSERT)
    reject_unknown_fields(medication, PRESCRIPTION_OPTIONAL_FIELDS)
    payload = {"diagnosis_id": diagnosis_id, "prescription_details": details, **medication}
    data = validate_prescription_data(payload)

    try:
        with transaction.atomic():
            diagnosis = _get_or_404(
                Diagnosis.objects.select_related("checkup__patient"), data.pop("diagnosis_id"), "diagnosis",
            )
            _ensure_not_prescribed(diagnosis)
            prescription = Prescription.objects.create(diagnosis=diagnosis, created_by=actor, **data)
            advance_patient_status(
                diagnosis.checkup.patient,
                table=PRESCRIPTION,
                checkup=diagnosis.checkup,
                diagnosis=diagnosis,
                prescription=prescription,
            )
    except IntegrityError as exc:
        raise _duplicate(
            PRESCRIPTION,
            "Diagnosis already has a prescription",
            "ALREADY_PRESCRIBED",
            {"diagnosis_id": str(diagnosis_id)},
        ) from exc

    RECORD_CREATED.labels(table=PRESCRIPTION).inc()
    logger.info("Created prescription %s on diagnosis %s by %s", prescription.id, diagnosis.id, actor.id)
    return prescription


def update_prescription(prescription_id, changes, actor_id):
    """
    处方的唯一更新入口，所有变更都经过 guard_prescription_update
    行锁（select_for_update）保证两个药师不会同时发药
    """
    actor = get_actor(actor_id)
    authorize(actor, PRESCRIPTION, UPDATE)
    changes = validate_prescription_update(changes)

    with transaction.atomic():
        prescription = _get_or_404(Prescription.objects.all(), prescription_id, "prescription", lock=True)
        updates = guard_prescription_update(prescription, changes, actor)
        if updates:
            for field, value in updates.items():
                setattr(prescription, field, value)
            prescription.save(update_fields=list(updates))

    if updates.get("fulfilled"):
        PRESCRIPTION_FULFILLED.inc()
        logger.info("Prescription %s fulfilled by %s", prescription.id, actor.id)
    return prescription


def fulfill_prescription(prescription_id, actor_id):
    """药师发药：fulfilled false -> true，并记录发药时间和药师"""
    return update_prescription(prescription_id, {"fulfilled": True}, actor_id)


# ---------------------------------------------------------------------------
# 读操作：最新的在前，join 上级记录
# ---------------------------------------------------------------------------

def _authorize_read(actor_id, table):
    if actor_id is not None:
        authorize(get_actor(actor_id), table, SELECT)


def list_patients(actor_id=None):
    _authorize_read(actor_id, PATIENT)
    return Patient.objects.order_by("-entry_datetime")


def list_checkups(actor_id=None):
    _authorize_read(actor_id, CHECKUP)
    return Checkup.objects.select_related("patient").order_by("-checkup_date")


def list_vital_signs(actor_id=None):
    _authorize_read(actor_id, VITAL_SIGNS)
    return VitalSigns.objects.select_related("checkup__patient").order_by("-recorded_at")


def list_diagnoses(actor_id=None):
    _authorize_read(actor_id, DIAGNOSIS)
    return Diagnosis.objects.select_related("checkup__patient").order_by("-diagnosis_datetime")


def list_prescriptions(actor_id=None):
    _authorize_read(actor_id, PRESCRIPTION)
    return (
        Prescription.objects
        .select_related("diagnosis__checkup__patient")
        .order_by("-prescribed_datetime")
    )


def get_patient_history(patient_id, actor_id=None):
    """
    单个患者的完整记录：checkups（含体征、诊断、处方），最新的在前
    返回 (patient, checkups)
    """
    _authorize_read(actor_id, PATIENT)
    patient = _get_or_404(Patient.objects.all(), patient_id, "patient")
    checkups = (
        Checkup.objects
        .filter(patient=patient)
        .select_related("diagnosis__prescription")
        .prefetch_related("vital_signs")
        .order_by("-checkup_date")
    )
    return patient, list(checkups)
