from rest_framework import serializers

from dispatch.reassignment import FleetScope
from dispatch.strategy import AssignmentStrategy

STRATEGY_CHOICES = [s.value for s in AssignmentStrategy]
FLEET_SCOPE_CHOICES = [s.value for s in FleetScope]


class RouteStopInputSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    promised_date = serializers.DateTimeField(required=False, allow_null=True)


class DriverSuggestionRequestSerializer(serializers.Serializer):
    # Optional; when sent it must match the X-Company-Id header
    company_id = serializers.CharField(required=False)
    vehicle_id = serializers.CharField()
    route_stops = RouteStopInputSerializer(many=True, required=False)
    strategy = serializers.ChoiceField(choices=STRATEGY_CHOICES, default=AssignmentStrategy.BALANCED.value)
    # Range is checked against the configured policy by the engine
    limit = serializers.IntegerField(required=False, allow_null=True)


class AssignmentValidationRequestSerializer(serializers.Serializer):
    company_id = serializers.CharField(required=False)
    driver_id = serializers.CharField()
    vehicle_id = serializers.CharField()
    route_stops = RouteStopInputSerializer(many=True, required=False)


class ReassignmentOptionsRequestSerializer(serializers.Serializer):
    company_id = serializers.CharField(required=False)
    absent_driver_id = serializers.CharField()
    job_id = serializers.CharField(required=False, allow_null=True)
    strategy = serializers.ChoiceField(choices=STRATEGY_CHOICES, default=AssignmentStrategy.BALANCED.value)
    # Range is checked against the configured policy by the engine
    limit = serializers.IntegerField(required=False, allow_null=True)
    fleet_scope = serializers.ChoiceField(choices=FLEET_SCOPE_CHOICES, default=FleetScope.SAME_FLEET.value)


class ReassignmentImpactRequestSerializer(serializers.Serializer):
    company_id = serializers.CharField(required=False)
    absent_driver_id = serializers.CharField()
    replacement_driver_id = serializers.CharField()
    job_id = serializers.CharField(required=False, allow_null=True)
