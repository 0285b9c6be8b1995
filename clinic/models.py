import uuid

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

ROLE_DOCTOR = 'doctor'
ROLE_OPERATIONS = 'operations'
ROLE_PHARMACIST = 'pharmacist'

ROLE_CHOICES = [
    (ROLE_DOCTOR, 'Doctor'),
    (ROLE_OPERATIONS, 'Operations'),
    (ROLE_PHARMACIST, 'Pharmacist'),
]

GENDER_CHOICES = [
    ('male', 'Male'),
    ('female', 'Female'),
    ('other', 'Other'),
]

STATUS_REGISTERED = 'registered'
STATUS_CHECKED = 'checked'
STATUS_DIAGNOSED = 'diagnosed'
STATUS_PRESCRIBED = 'prescribed'

# 顺序即流程顺序，status.py 依赖这个顺序
STATUS_CHOICES = [
    (STATUS_REGISTERED, 'Registered'),
    (STATUS_CHECKED, 'Checked'),
    (STATUS_DIAGNOSED, 'Diagnosed'),
    (STATUS_PRESCRIBED, 'Prescribed'),
]

MIN_AGE = 0
MAX_AGE = 150

"""
Profile字段（即 actor）:
id(uuid); user(可选，关联 Django 登录用户); role; created_at; updated_at
创建后只有 role 可以修改
"""
class Profile(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='profile',
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'profiles'
        constraints = [
            models.CheckConstraint(
                condition=Q(role__in=[r for r, _ in ROLE_CHOICES]),
                name='profiles_role_valid',
            ),
        ]

    def __str__(self):
        return f"{self.user or self.id} ({self.role})"

"""
Patient字段:
id; name; gender; age(0-150); status(只能由状态流转修改); created_by; entry_datetime
"""
class Patient(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.TextField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    age = models.IntegerField(
        validators=[MinValueValidator(MIN_AGE), MaxValueValidator(MAX_AGE)],
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_REGISTERED)
    created_by = models.ForeignKey(Profile, on_delete=models.PROTECT, related_name='+')
    entry_datetime = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'patients'
        constraints = [
            models.CheckConstraint(
                condition=Q(age__gte=MIN_AGE) & Q(age__lte=MAX_AGE),
                name='patients_age_range',
            ),
            models.CheckConstraint(
                condition=Q(gender__in=[g for g, _ in GENDER_CHOICES]),
                name='patients_gender_valid',
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.status})"

"""
Checkup字段:
id; patient(外键 → Patient，级联删除); checkup_description; checkup_date; created_by
chief_complaint / physical_examination / notes 可选
(patient, checkup_date) 唯一
"""
class Checkup(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='checkups')
    checkup_description = models.TextField()
    checkup_date = models.DateTimeField(default=timezone.now)
    chief_complaint = models.TextField(blank=True)
    physical_examination = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(Profile, on_delete=models.PROTECT, related_name='+')

    class Meta:
        db_table = 'checkups'
        constraints = [
            models.UniqueConstraint(
                fields=['patient', 'checkup_date'],
                name='checkups_patient_date_unique',
            ),
        ]

    def __str__(self):
        return f"Checkup for {self.patient.name} at {self.checkup_date:%Y-%m-%d %H:%M}"


class VitalSigns(models.Model):
    """体征记录，挂在 checkup 下面，不影响患者状态"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    checkup = models.ForeignKey(Checkup, on_delete=models.CASCADE, related_name='vital_signs')
    temperature = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    blood_pressure_systolic = models.IntegerField(null=True, blank=True)
    blood_pressure_diastolic = models.IntegerField(null=True, blank=True)
    heart_rate = models.IntegerField(null=True, blank=True)
    respiratory_rate = models.IntegerField(null=True, blank=True)
    oxygen_saturation = models.IntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    recorded_at = models.DateTimeField(default=timezone.now)
    created_by = models.ForeignKey(Profile, on_delete=models.PROTECT, related_name='+')

    class Meta:
        db_table = 'vital_signs'

"""
Diagnosis字段:
id; checkup(外键 → Checkup，唯一，1:1); diagnosis_description; diagnosis_datetime; created_by
"""
class Diagnosis(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    checkup = models.OneToOneField(Checkup, on_delete=models.CASCADE, related_name='diagnosis')
    diagnosis_description = models.TextField()
    diagnosis_datetime = models.DateTimeField(default=timezone.now)
    created_by = models.ForeignKey(Profile, on_delete=models.PROTECT, related_name='+')

    class Meta:
        db_table = 'diagnoses'

    def __str__(self):
        return f"Diagnosis: {self.diagnosis_description[:40]}"

"""
Prescription字段:
id; diagnosis(外键 → Diagnosis，唯一，1:1); prescription_details; prescribed_datetime
fulfilled; fulfilled_datetime; fulfilled_by（只能由发药流程写入一次）; created_by
dosage / frequency / duration / route / special_instructions 可选
"""
class Prescription(models.Model):
    # 创建后允许变化的字段，其余字段都不可变
    FULFILLMENT_FIELDS = ('fulfilled', 'fulfilled_datetime', 'fulfilled_by')
    IMMUTABLE_FIELDS = (
        'diagnosis',
        'prescription_details',
        'prescribed_datetime',
        'created_by',
        'dosage',
        'frequency',
        'duration',
        'route',
        'special_instructions',
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    diagnosis = models.OneToOneField(Diagnosis, on_delete=models.CASCADE, related_name='prescription')
    prescription_details = models.TextField()
    prescribed_datetime = models.DateTimeField(default=timezone.now)
    dosage = models.TextField(blank=True)
    frequency = models.TextField(blank=True)
    duration = models.TextField(blank=True)
    route = models.TextField(blank=True)
    special_instructions = models.TextField(blank=True)
    fulfilled = models.BooleanField(default=False)
    fulfilled_datetime = models.DateTimeField(null=True, blank=True)
    fulfilled_by = models.ForeignKey(
        Profile,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
    )
    created_by = models.ForeignKey(Profile, on_delete=models.PROTECT, related_name='+')

    class Meta:
        db_table = 'prescriptions'

    def __str__(self):
        state = 'fulfilled' if self.fulfilled else 'pending'
        return f"Prescription: {self.prescription_details[:40]} ({state})"
