"""
HTTP 层：只做 request -> service 参数 -> JSON 的转换
actor 取自已登录用户的 profile，显式传给 service
业务异常（BaseAppException）由 AppExceptionMiddleware 统一转成 JSON
"""
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from clinic_workflow.exceptions import AuthorizationError

from . import services
from .models import Profile
from .policies import CHECKUP, INSERT, PRESCRIPTION, VITAL_SIGNS, authorize
from .serializers import (
    CHECKUP_OPTIONAL_FIELDS,
    PRESCRIPTION_OPTIONAL_FIELDS,
    VITAL_SIGNS_FIELDS,
    checkup_to_dict,
    diagnosis_to_dict,
    parse_json_body,
    patient_to_dict,
    prescription_to_dict,
    reject_unknown_fields,
    validate_patient_data,
    vital_signs_to_dict,
)


def _actor(request):
    """登录用户 -> Profile；未登录或没有 profile 都按未认证处理"""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        raise AuthorizationError(
            message="Authentication required",
            code="NOT_AUTHENTICATED",
            http_status=401,
        )
    profile = Profile.objects.filter(user=user).first()
    if profile is None:
        raise AuthorizationError(
            message="User has no clinic profile",
            code="UNKNOWN_ACTOR",
            http_status=401,
        )
    return profile


def _ok(data, status=200):
    return JsonResponse({"success": True, "data": data}, status=status)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def patients(request):
    actor = _actor(request)
    if request.method == "GET":
        items = [patient_to_dict(p) for p in services.list_patients(actor.id)]
        return _ok({"results": items})

    data = parse_json_body(request.body)
    if "status" in data:
        # 交给 serializer 报错：status 不能由客户端设置
        validate_patient_data(data)
    patient = services.create_patient(data.get("name"), data.get("gender"), data.get("age"), actor.id)
    return _ok(patient_to_dict(patient), status=201)


@require_http_methods(["GET"])
def patient_detail(request, patient_id):
    actor = _actor(request)
    patient, checkups = services.get_patient_history(patient_id, actor.id)

    history = []
    for checkup in checkups:
        entry = checkup_to_dict(checkup, with_patient=False)
        entry["vital_signs"] = [vital_signs_to_dict(v, with_checkup=False) for v in checkup.vital_signs.all()]
        entry["diagnosis"] = None
        if hasattr(checkup, "diagnosis"):
            diagnosis = checkup.diagnosis
            entry["diagnosis"] = diagnosis_to_dict(diagnosis, with_checkup=False)
            entry["diagnosis"]["prescription"] = None
            if hasattr(diagnosis, "prescription"):
                entry["diagnosis"]["prescription"] = prescription_to_dict(
                    diagnosis.prescription, with_diagnosis=False,
                )
        history.append(entry)

    data = patient_to_dict(patient)
    data["checkups"] = history
    return _ok(data)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def checkups(request):
    actor = _actor(request)
    if request.method == "GET":
        items = [checkup_to_dict(c) for c in services.list_checkups(actor.id)]
        return _ok({"results": items})

    data = parse_json_body(request.body)
    authorize(actor, CHECKUP, INSERT)
    reject_unknown_fields(data, ("patient_id", "checkup_description") + CHECKUP_OPTIONAL_FIELDS)
    extra = {k: data[k] for k in CHECKUP_OPTIONAL_FIELDS if k in data}
    checkup = services.create_checkup(data.get("patient_id"), data.get("checkup_description"), actor.id, **extra)
    return _ok(checkup_to_dict(checkup), status=201)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def vital_signs(request):
    actor = _actor(request)
    if request.method == "GET":
        items = [vital_signs_to_dict(v) for v in services.list_vital_signs(actor.id)]
        return _ok({"results": items})

    data = parse_json_body(request.body)
    authorize(actor, VITAL_SIGNS, INSERT)
    reject_unknown_fields(data, ("checkup_id",) + VITAL_SIGNS_FIELDS)
    vitals = {k: data[k] for k in VITAL_SIGNS_FIELDS if k in data}
    record = services.record_vital_signs(data.get("checkup_id"), actor.id, **vitals)
    return _ok(vital_signs_to_dict(record), status=201)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def diagnoses(request):
    actor = _actor(request)
    if request.method == "GET":
        items = [diagnosis_to_dict(d) for d in services.list_diagnoses(actor.id)]
        return _ok({"results": items})

    data = parse_json_body(request.body)
    diagnosis = services.create_diagnosis(data.get("checkup_id"), data.get("diagnosis_description"), actor.id)
    return _ok(diagnosis_to_dict(diagnosis), status=201)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def prescriptions(request):
    actor = _actor(request)
    if request.method == "GET":
        items = [prescription_to_dict(p) for p in services.list_prescriptions(actor.id)]
        return _ok({"results": items})

    data = parse_json_body(request.body)
    authorize(actor, PRESCRIPTION, INSERT)
    reject_unknown_fields(data, ("diagnosis_id", "prescription_details") + PRESCRIPTION_OPTIONAL_FIELDS)
    medication = {k: data[k] for k in PRESCRIPTION_OPTIONAL_FIELDS if k in data}
    prescription = services.create_prescription(
        data.get("diagnosis_id"), data.get("prescription_details"), actor.id, **medication,
    )
    return _ok(prescription_to_dict(prescription), status=201)


@csrf_exempt
@require_http_methods(["PATCH"])
def prescription_detail(request, prescription_id):
    actor = _actor(request)
    changes = parse_json_body(request.body)
    prescription = services.update_prescription(prescription_id, changes, actor.id)
    return _ok(prescription_to_dict(prescription, with_diagnosis=False))


@csrf_exempt
@require_http_methods(["POST"])
def fulfill_prescription(request, prescription_id):
    actor = _actor(request)
    prescription = services.fulfill_prescription(prescription_id, actor.id)
    return _ok(prescription_to_dict(prescription, with_diagnosis=False))
