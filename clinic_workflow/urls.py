from django.contrib import admin
from django.urls import path
from clinic import views
from clinic.views_metrics import metrics

# RESTful 风格：列表用 GET，新建用 POST，处方只允许 PATCH 发药相关字段
urlpatterns = [
    path('admin/', admin.site.urls),
    path('metrics', metrics, name='metrics'),
    path('api/patients/', views.patients, name='patients'),
    path('api/patients/<uuid:patient_id>/', views.patient_detail, name='patient_detail'),
    path('api/checkups/', views.checkups, name='checkups'),
    path('api/vital-signs/', views.vital_signs, name='vital_signs'),
    path('api/diagnoses/', views.diagnoses, name='diagnoses'),
    path('api/prescriptions/', views.prescriptions, name='prescriptions'),
    path('api/prescriptions/<uuid:prescription_id>/', views.prescription_detail, name='prescription_detail'),
    path(
        'api/prescriptions/<uuid:prescription_id>/fulfill/',
        views.fulfill_prescription,
        name='fulfill_prescription',
    ),
]
