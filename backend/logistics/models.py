import uuid

from django.db import models
from phonenumber_field.modelfields import PhoneNumberField


class Fleet(models.Model):
    """
    A group of vehicles and drivers operated together (e.g. "Cold chain north").
    """
    class Types(models.TextChoices):
        HEAVY_LOAD = "HEAVY_LOAD", "Heavy Load"
        LIGHT_LOAD = "LIGHT_LOAD", "Light Load"
        EXPRESS = "EXPRESS", "Express"
        REFRIGERATED = "REFRIGERATED", "Refrigerated"
        SPECIAL = "SPECIAL", "Special"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company_id = models.CharField(max_length=64, db_index=True)
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=Types.choices, blank=True, null=True)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class Skill(models.Model):
    """
    Something an order may require and a driver may hold (hazmat, cold chain...).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company_id = models.CharField(max_length=64, db_index=True)
    code = models.CharField(max_length=50)
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=50, blank=True)
    active = models.BooleanField(default=True)

    def __str__(self):
        return self.name


class Driver(models.Model):
    """
    Legacy driver table. Only knows a single fleet; drivers created as users
    with the DRIVER role carry primary + secondary fleets instead.
    """
    class Status(models.TextChoices):
        AVAILABLE = "AVAILABLE", "Available"
        ASSIGNED = "ASSIGNED", "Assigned"
        IN_ROUTE = "IN_ROUTE", "In Route"
        ON_PAUSE = "ON_PAUSE", "On Pause"
        COMPLETED = "COMPLETED", "Completed"
        UNAVAILABLE = "UNAVAILABLE", "Unavailable"
        ABSENT = "ABSENT", "Absent"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company_id = models.CharField(max_length=64, db_index=True)
    fleet = models.ForeignKey(Fleet, on_delete=models.SET_NULL, null=True, blank=True, related_name='drivers')
    name = models.CharField(max_length=255)
    identification = models.CharField(max_length=50)
    phone_number = PhoneNumberField(blank=True, null=True)
    license_number = models.CharField(max_length=50)
    license_expiry = models.DateTimeField(blank=True, null=True)
    license_categories = models.CharField(max_length=100, blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AVAILABLE)
    active = models.BooleanField(default=True)

    def __str__(self):
        return self.name


class DriverSkill(models.Model):
    driver = models.ForeignKey(Driver, on_delete=models.CASCADE, related_name='driver_skills')
    skill = models.ForeignKey(Skill, on_delete=models.CASCADE, related_name='driver_skills')
    expires_at = models.DateTimeField(blank=True, null=True)
    active = models.BooleanField(default=True)


class Vehicle(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company_id = models.CharField(max_length=64, db_index=True)
    plate = models.CharField(max_length=20)
    # License category needed to drive it (e.g. "C2"); blank means any
    license_required = models.CharField(max_length=10, blank=True, null=True)
    active = models.BooleanField(default=True)

    def __str__(self):
        return self.plate


class VehicleFleet(models.Model):
    """
    Vehicle <-> fleet membership. The oldest membership is the vehicle's primary fleet.
    """
    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name='fleet_links')
    fleet = models.ForeignKey(Fleet, on_delete=models.CASCADE, related_name='vehicle_links')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("vehicle", "fleet")
        ordering = ["created_at", "id"]


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        ASSIGNED = "ASSIGNED", "Assigned"
        IN_PROGRESS = "IN_PROGRESS", "In Progress"
        COMPLETED = "COMPLETED", "Completed"
        FAILED = "FAILED", "Failed"
        CANCELLED = "CANCELLED", "Cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company_id = models.CharField(max_length=64, db_index=True)
    tracking_id = models.CharField(max_length=50)
    address = models.TextField(blank=True)
    # Skill ids this order needs. Older rows hold a JSON string instead of a list.
    required_skills = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    def __str__(self):
        return self.tracking_id


class RouteStop(models.Model):
    """
    One stop of a confirmed route plan. Written by the plan confirmation flow,
    read here to find what an absent driver still had to do.
    """
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        IN_PROGRESS = "IN_PROGRESS", "In Progress"
        COMPLETED = "COMPLETED", "Completed"
        FAILED = "FAILED", "Failed"
        CANCELLED = "CANCELLED", "Cancelled"
        SKIPPED = "SKIPPED", "Skipped"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company_id = models.CharField(max_length=64, db_index=True)
    job_id = models.CharField(max_length=64, blank=True, null=True, db_index=True)
    route_id = models.CharField(max_length=64, db_index=True)
    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name='route_stops')
    # Either a users.User (DRIVER role) id or a legacy Driver id
    driver_id = models.CharField(max_length=64, db_index=True)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='route_stops')
    sequence = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    address = models.TextField(blank=True)
    time_window_start = models.DateTimeField(blank=True, null=True)
    time_window_end = models.DateTimeField(blank=True, null=True)
    estimated_arrival = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["route_id", "sequence"]
