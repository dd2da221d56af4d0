import logging

from django.conf import settings
from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response

from dispatch.dispatcher import Dispatcher
from dispatch.exceptions import AssignmentRequestRejected
from dispatch.reassignment import ReassignmentPlanner
from drivers.policy import policy_from_env
from gateway.http_client import FleetApiClient, FleetApiError

from .gateway import DjangoEntityGateway
from .serializers import (
    AssignmentValidationRequestSerializer,
    DriverSuggestionRequestSerializer,
    ReassignmentImpactRequestSerializer,
    ReassignmentOptionsRequestSerializer,
)

logger = logging.getLogger(__name__)

COMPANY_HEADER = "X-Company-Id"


class CompanyScopedViewSet(viewsets.ViewSet):
    """
    Base for the assignment endpoints.
    - Tenant comes from the X-Company-Id header (no header, no access)
    - Request bodies are validated before the engine is called
    - Engine rejections are mapped to their HTTP status
    """
    permission_classes = [permissions.IsAuthenticated]

    # Tests (and alternative deployments) inject a gateway through as_view()
    gateway = None

    def get_gateway(self):
        if self.gateway is not None:
            return self.gateway
        base_url = getattr(settings, "FLEET_API_BASE_URL", None)
        if base_url:
            return FleetApiClient(base_url)
        return DjangoEntityGateway()

    def run(self, request, serializer_class, operation):
        """
        Validates the body for the header's company and calls
        operation(company_id, validated_data) -> (data, meta).
        """
        company_id = request.headers.get(COMPANY_HEADER)
        if not company_id:
            return Response({"error": "Company context required"}, status=status.HTTP_401_UNAUTHORIZED)

        serializer = serializer_class(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid request", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        body_company = serializer.validated_data.get("company_id")
        if body_company and body_company != company_id:
            return Response({"error": "Company mismatch"}, status=status.HTTP_403_FORBIDDEN)

        try:
            data, meta = operation(company_id, serializer.validated_data)
        except AssignmentRequestRejected as e:
            return Response({"error": e.message}, status=e.status_code)
        except FleetApiError as e:
            logger.error(f"Fleet data unavailable for company {company_id}: {e}")
            return Response({"error": "Fleet data unavailable"}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({"data": data, "meta": meta})


class DriverAssignmentViewSet(CompanyScopedViewSet):
    """
    Driver suggestions and manual assignment checks for one vehicle.
    """

    def get_dispatcher(self):
        return Dispatcher(self.get_gateway(), policy=policy_from_env())

    @action(detail=False, methods=['post'])
    def suggestions(self, request):
        """
        Ranked drivers for a vehicle and the stops of its route.
        """
        def operation(company_id, data):
            result = self.get_dispatcher().suggest_drivers(
                company_id,
                data["vehicle_id"],
                data.get("route_stops", []),
                strategy=data["strategy"],
                limit=data.get("limit"),
            )
            body = result.to_dict()
            return body["data"], body["meta"]

        return self.run(request, DriverSuggestionRequestSerializer, operation)

    @action(detail=False, methods=['post'], url_path='validate')
    def validate_assignment(self, request):
        """
        Checks a driver picked by hand for a vehicle.
        """
        def operation(company_id, data):
            result = self.get_dispatcher().validate_assignment(
                company_id,
                data["driver_id"],
                data["vehicle_id"],
                data.get("route_stops", []),
            )
            return result.to_dict(), {"driver_id": data["driver_id"], "vehicle_id": data["vehicle_id"]}

        return self.run(request, AssignmentValidationRequestSerializer, operation)


class ReassignmentViewSet(CompanyScopedViewSet):
    """
    Replacement options when a driver becomes absent mid-route.
    """

    def get_planner(self):
        return ReassignmentPlanner(self.get_gateway(), policy=policy_from_env())

    @action(detail=False, methods=['post'], url_path='options')
    def replacement_options(self, request):
        def operation(company_id, data):
            result = self.get_planner().generate_options(
                company_id,
                data["absent_driver_id"],
                job_id=data.get("job_id"),
                strategy=data["strategy"],
                limit=data.get("limit"),
                fleet_scope=data["fleet_scope"],
            )
            meta = result.meta()
            if result.message:
                meta["message"] = result.message
            return [o.to_dict() for o in result.options], meta

        return self.run(request, ReassignmentOptionsRequestSerializer, operation)

    @action(detail=False, methods=['post'])
    def impact(self, request):
        def operation(company_id, data):
            impact = self.get_planner().calculate_impact(
                company_id,
                data["absent_driver_id"],
                data["replacement_driver_id"],
                job_id=data.get("job_id"),
            )
            return impact.to_dict(), {"absent_driver_id": data["absent_driver_id"]}

        return self.run(request, ReassignmentImpactRequestSerializer, operation)
