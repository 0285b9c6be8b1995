"""
数据校验和格式转换（前端 ↔ 后端）
校验只做存在性 / 枚举 / 范围检查，失败时抛出 ValidationError，detail 包含所有错误
"""
import json
import uuid
from decimal import Decimal, InvalidOperation

from clinic_workflow.exceptions import ValidationError

from .models import GENDER_CHOICES, MAX_AGE, MIN_AGE

GENDERS = [g for g, _ in GENDER_CHOICES]

CHECKUP_OPTIONAL_FIELDS = ("chief_complaint", "physical_examination", "notes")
PRESCRIPTION_OPTIONAL_FIELDS = ("dosage", "frequency", "duration", "route", "special_instructions")
VITAL_SIGNS_INT_FIELDS = (
    "blood_pressure_systolic",
    "blood_pressure_diastolic",
    "heart_rate",
    "respiratory_rate",
    "oxygen_saturation",
)
# 整数体征的合理范围（闭区间）
VITAL_SIGNS_RANGES = {
    "blood_pressure_systolic": (0, 300),
    "blood_pressure_diastolic": (0, 300),
    "heart_rate": (0, 300),
    "respiratory_rate": (0, 100),
    "oxygen_saturation": (0, 100),
}
VITAL_SIGNS_FIELDS = ("temperature",) + VITAL_SIGNS_INT_FIELDS


def _validate_required_string(value, field_name):
    """必填字符串：非空"""
    if value is None or not isinstance(value, str) or not value.strip():
        return f"{field_name} 不能为空"
    return None


def _validate_optional_string(value, field_name):
    if value is None or isinstance(value, str):
        return None
    return f"{field_name} 必须是字符串"


def _validate_uuid(value, field_name):
    if value is None or value == "":
        return f"{field_name} 不能为空"
    if isinstance(value, uuid.UUID):
        return None
    try:
        uuid.UUID(str(value))
    except ValueError:
        return f"{field_name} 必须是合法的 UUID"
    return None


def _is_int(value):
    # bool 是 int 的子类，要排除
    return isinstance(value, int) and not isinstance(value, bool)


def _raise_if_errors(errors):
    if errors:
        raise ValidationError(
            message="数据格式校验失败",
            code="VALIDATION_ERROR",
            detail={"errors": errors},
        )


def _require_dict(data):
    if not isinstance(data, dict):
        raise ValidationError(
            message="请求体必须是 JSON 对象",
            code="INVALID_REQUEST",
            detail={"errors": [{"field": "_", "message": "请求体必须是 JSON 对象"}]},
        )


def reject_unknown_fields(data, allowed):
    """data 里出现 allowed 之外的字段时抛出 ValidationError"""
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValidationError(
            message="数据格式校验失败",
            code="VALIDATION_ERROR",
            detail={"errors": [{"field": f, "message": "未知字段"} for f in unknown]},
        )


def validate_patient_data(data):
    """
    name 必填；gender ∈ male/female/other；age 为 0-150 的整数
    status 由系统推导，客户端不能传
    """
    _require_dict(data)
    errors = []

    msg = _validate_required_string(data.get("name"), "name")
    if msg:
        errors.append({"field": "name", "message": msg})

    gender = data.get("gender")
    if gender not in GENDERS:
        errors.append({"field": "gender", "message": f"gender 必须是 {', '.join(GENDERS)} 之一"})

    age = data.get("age")
    if age is None:
        errors.append({"field": "age", "message": "age 不能为空"})
    elif not _is_int(age):
        errors.append({"field": "age", "message": "age 必须是整数"})
    elif not MIN_AGE <= age <= MAX_AGE:
        errors.append({"field": "age", "message": f"age 必须在 {MIN_AGE} 到 {MAX_AGE} 之间"})

    if "status" in data:
        errors.append({"field": "status", "message": "status 由系统推导，不能直接设置"})

    _raise_if_errors(errors)
    return {
        "name": data["name"].strip(),
        "gender": gender,
        "age": age,
    }


def validate_checkup_data(data):
    """patient_id 必填；checkup_description 必填；其余字段可选"""
    _require_dict(data)
    errors = []

    msg = _validate_uuid(data.get("patient_id"), "patient_id")
    if msg:
        errors.append({"field": "patient_id", "message": msg})

    msg = _validate_required_string(data.get("checkup_description"), "checkup_description")
    if msg:
        errors.append({"field": "checkup_description", "message": msg})

    for field in CHECKUP_OPTIONAL_FIELDS:
        msg = _validate_optional_string(data.get(field), field)
        if msg:
            errors.append({"field": field, "message": msg})

    _raise_if_errors(errors)
    cleaned = {
        "patient_id": str(data["patient_id"]),
        "checkup_description": data["checkup_description"].strip(),
    }
    for field in CHECKUP_OPTIONAL_FIELDS:
        cleaned[field] = (data.get(field) or "").strip()
    return cleaned


def validate_diagnosis_data(data):
    """checkup_id 必填；diagnosis_description 必填"""
    _require_dict(data)
    errors = []

    msg = _validate_uuid(data.get("checkup_id"), "checkup_id")
    if msg:
        errors.append({"field": "checkup_id", "message": msg})

    msg = _validate_required_string(data.get("diagnosis_description"), "diagnosis_description")
    if msg:
        errors.append({"field": "diagnosis_description", "message": msg})

    _raise_if_errors(errors)
    return {
        "checkup_id": str(data["checkup_id"]),
        "diagnosis_description": data["diagnosis_description"].strip(),
    }


def validate_prescription_data(data):
    """diagnosis_id 必填；prescription_details 必填；用药细节可选"""
    _require_dict(data)
    errors = []

    msg = _validate_uuid(data.get("diagnosis_id"), "diagnosis_id")
    if msg:
        errors.append({"field": "diagnosis_id", "message": msg})

    msg = _validate_required_string(data.get("prescription_details"), "prescription_details")
    if msg:
        errors.append({"field": "prescription_details", "message": msg})

    for field in PRESCRIPTION_OPTIONAL_FIELDS:
        msg = _validate_optional_string(data.get(field), field)
        if msg:
            errors.append({"field": field, "message": msg})

    for field in ("fulfilled", "fulfilled_datetime", "fulfilled_by"):
        if data.get(field):
            errors.append({"field": field, "message": f"{field} 只能在发药时写入"})

    _raise_if_errors(errors)
    cleaned = {
        "diagnosis_id": str(data["diagnosis_id"]),
        "prescription_details": data["prescription_details"].strip(),
    }
    for field in PRESCRIPTION_OPTIONAL_FIELDS:
        cleaned[field] = (data.get(field) or "").strip()
    return cleaned


def validate_vital_signs_data(data):
    """checkup_id 必填；体征数值均可选，整数体征按 VITAL_SIGNS_RANGES 检查范围"""
    _require_dict(data)
    errors = []

    msg = _validate_uuid(data.get("checkup_id"), "checkup_id")
    if msg:
        errors.append({"field": "checkup_id", "message": msg})

    cleaned = {"checkup_id": str(data.get("checkup_id"))}

    temperature = data.get("temperature")
    if temperature is None:
        cleaned["temperature"] = None
    else:
        try:
            value = Decimal(str(temperature))
        except InvalidOperation:
            errors.append({"field": "temperature", "message": "temperature 必须是数字"})
        else:
            if not value.is_finite() or abs(value) > 999:
                errors.append({"field": "temperature", "message": "temperature 超出范围"})
            else:
                cleaned["temperature"] = value.quantize(Decimal("0.1"))

    for field in VITAL_SIGNS_INT_FIELDS:
        value = data.get(field)
        if value is None:
            cleaned[field] = None
            continue
        if not _is_int(value):
            errors.append({"field": field, "message": f"{field} 必须是整数"})
            continue
        low, high = VITAL_SIGNS_RANGES[field]
        if not low <= value <= high:
            errors.append({"field": field, "message": f"{field} 必须在 {low} 到 {high} 之间"})
            continue
        cleaned[field] = value

    _raise_if_errors(errors)
    return cleaned


def validate_prescription_update(data):
    """
    处方 PATCH：只做格式检查，哪些字段能改由 fulfillment.guard_prescription_update 决定
    """
    _require_dict(data)
    if not data:
        raise ValidationError(
            message="数据格式校验失败",
            code="VALIDATION_ERROR",
            detail={"errors": [{"field": "_", "message": "没有需要更新的字段"}]},
        )
    if "fulfilled" in data and not isinstance(data["fulfilled"], bool):
        raise ValidationError(
            message="数据格式校验失败",
            code="VALIDATION_ERROR",
            detail={"errors": [{"field": "fulfilled", "message": "fulfilled 必须是布尔值"}]},
        )
    return data


def parse_json_body(body):
    """
    解析 POST body (JSON) -> dict
    JSON 格式错误时抛出 ValidationError
    """
    try:
        data = json.loads(body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(
            message="Invalid JSON format",
            code="INVALID_JSON",
            detail={"error": str(e)},
        )
    _require_dict(data)
    return data


def _iso(value):
    return value.isoformat() if value else None


def patient_to_dict(patient):
    return {
        "id": str(patient.id),
        "name": patient.name,
        "gender": patient.gender,
        "age": patient.age,
        "status": patient.status,
        "entry_datetime": _iso(patient.entry_datetime),
        "created_by": str(patient.created_by_id),
    }


def checkup_to_dict(checkup, with_patient=True):
    data = {
        "id": str(checkup.id),
        "patient_id": str(checkup.patient_id),
        "checkup_description": checkup.checkup_description,
        "checkup_date": _iso(checkup.checkup_date),
        "chief_complaint": checkup.chief_complaint,
        "physical_examination": checkup.physical_examination,
        "notes": checkup.notes,
        "created_by": str(checkup.created_by_id),
    }
    if with_patient:
        data["patient"] = patient_to_dict(checkup.patient)
    return data


def vital_signs_to_dict(vitals, with_checkup=True):
    data = {
        "id": str(vitals.id),
        "checkup_id": str(vitals.checkup_id),
        "temperature": str(vitals.temperature) if vitals.temperature is not None else None,
        "blood_pressure_systolic": vitals.blood_pressure_systolic,
        "blood_pressure_diastolic": vitals.blood_pressure_diastolic,
        "heart_rate": vitals.heart_rate,
        "respiratory_rate": vitals.respiratory_rate,
        "oxygen_saturation": vitals.oxygen_saturation,
        "recorded_at": _iso(vitals.recorded_at),
        "created_by": str(vitals.created_by_id),
    }
    if with_checkup:
        data["checkup"] = checkup_to_dict(vitals.checkup)
    return data


def diagnosis_to_dict(diagnosis, with_checkup=True):
    data = {
        "id": str(diagnosis.id),
        "checkup_id": str(diagnosis.checkup_id),
        "diagnosis_description": diagnosis.diagnosis_description,
        "diagnosis_datetime": _iso(diagnosis.diagnosis_datetime),
        "created_by": str(diagnosis.created_by_id),
    }
    if with_checkup:
        data["checkup"] = checkup_to_dict(diagnosis.checkup)
    return data


def prescription_to_dict(prescription, with_diagnosis=True):
    data = {
        "id": str(prescription.id),
        "diagnosis_id": str(prescription.diagnosis_id),
        "prescription_details": prescription.prescription_details,
        "prescribed_datetime": _iso(prescription.prescribed_datetime),
        "dosage": prescription.dosage,
        "frequency": prescription.frequency,
        "duration": prescription.duration,
        "route": prescription.route,
        "special_instructions": prescription.special_instructions,
        "fulfilled": prescription.fulfilled,
        "fulfilled_datetime": _iso(prescription.fulfilled_datetime),
        "fulfilled_by": str(prescription.fulfilled_by_id) if prescription.fulfilled_by_id else None,
        "created_by": str(prescription.created_by_id),
    }
    if with_diagnosis:
        data["diagnosis"] = diagnosis_to_dict(prescription.diagnosis)
    return data
