from django.contrib import admin
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from logistics.views import DriverAssignmentViewSet, ReassignmentViewSet

router = DefaultRouter()
router.register(r'driver-assignment', DriverAssignmentViewSet, basename='driver-assignment')
router.register(r'reassignment', ReassignmentViewSet, basename='reassignment')

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include(router.urls)),
]
