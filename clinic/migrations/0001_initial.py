import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Profile',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('role', models.CharField(choices=[('doctor', 'Doctor'), ('operations', 'Operations'), ('pharmacist', 'Pharmacist')], max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'profiles',
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('role__in', ['doctor', 'operations', 'pharmacist'])), name='profiles_role_valid'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.TextField()),
                ('gender', models.CharField(choices=[('male', 'Male'), ('female', 'Female'), ('other', 'Other')], max_length=10)),
                ('age', models.IntegerField(validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(150)])),
                ('status', models.CharField(choices=[('registered', 'Registered'), ('checked', 'Checked'), ('diagnosed', 'Diagnosed'), ('prescribed', 'Prescribed')], default='registered', max_length=20)),
                ('entry_datetime', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='clinic.profile')),
            ],
            options={
                'db_table': 'patients',
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('age__gte', 0), ('age__lte', 150)), name='patients_age_range'),
                    models.CheckConstraint(condition=models.Q(('gender__in', ['male', 'female', 'other'])), name='patients_gender_valid'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Checkup',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('checkup_description', models.TextField()),
                ('checkup_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('chief_complaint', models.TextField(blank=True)),
                ('physical_examination', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='clinic.profile')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='checkups', to='clinic.patient')),
            ],
            options={
                'db_table': 'checkups',
                'constraints': [
                    models.UniqueConstraint(fields=('patient', 'checkup_date'), name='checkups_patient_date_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='VitalSigns',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('temperature', models.DecimalField(blank=True, decimal_places=1, max_digits=4, null=True)),
                ('blood_pressure_systolic', models.IntegerField(blank=True, null=True)),
                ('blood_pressure_diastolic', models.IntegerField(blank=True, null=True)),
                ('heart_rate', models.IntegerField(blank=True, null=True)),
                ('respiratory_rate', models.IntegerField(blank=True, null=True)),
                ('oxygen_saturation', models.IntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('recorded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('checkup', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vital_signs', to='clinic.checkup')),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='clinic.profile')),
            ],
            options={
                'db_table': 'vital_signs',
            },
        ),
        migrations.CreateModel(
            name='Diagnosis',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('diagnosis_description', models.TextField()),
                ('diagnosis_datetime', models.DateTimeField(default=django.utils.timezone.now)),
                ('checkup', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='diagnosis', to='clinic.checkup')),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='clinic.profile')),
            ],
            options={
                'db_table': 'diagnoses',
            },
        ),
        migrations.CreateModel(
            name='Prescription',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('prescription_details', models.TextField()),
                ('prescribed_datetime', models.DateTimeField(default=django.utils.timezone.now)),
                ('dosage', models.TextField(blank=True)),
                ('frequency', models.TextField(blank=True)),
                ('duration', models.TextField(blank=True)),
                ('route', models.TextField(blank=True)),
                ('special_instructions', models.TextField(blank=True)),
                ('fulfilled', models.BooleanField(default=False)),
                ('fulfilled_datetime', models.DateTimeField(blank=True, null=True)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='clinic.profile')),
                ('diagnosis', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='prescription', to='clinic.diagnosis')),
                ('fulfilled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='clinic.profile')),
            ],
            options={
                'db_table': 'prescriptions',
            },
        ),
    ]
