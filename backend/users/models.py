import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models
from phonenumber_field.modelfields import PhoneNumberField


class User(AbstractUser):
    class Roles(models.TextChoices):
        ADMIN = "ADMIN", "Admin"
        PLANNER = "PLANNER", "Planner"
        MONITOR = "MONITOR", "Monitor"
        DRIVER = "DRIVER", "Driver"

    class DriverStatus(models.TextChoices):
        AVAILABLE = "AVAILABLE", "Available"
        ASSIGNED = "ASSIGNED", "Assigned"
        IN_ROUTE = "IN_ROUTE", "In Route"
        ON_PAUSE = "ON_PAUSE", "On Pause"
        COMPLETED = "COMPLETED", "Completed"
        UNAVAILABLE = "UNAVAILABLE", "Unavailable"
        ABSENT = "ABSENT", "Absent"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Tenant the user works for; every query is scoped by it
    company_id = models.CharField(max_length=64, db_index=True)

    # Role fields define permissions in the app
    # PLANNER: Builds and confirms route plans
    # MONITOR: Follows execution, handles absences
    # DRIVER: Can be assigned to vehicles
    role = models.CharField(max_length=20, choices=Roles.choices, default=Roles.PLANNER)

    phone_number = PhoneNumberField(blank=True, null=True)
    identification = models.CharField(max_length=50, blank=True, null=True)

    # Driver specific fields (only meaningful when role == DRIVER)
    primary_fleet = models.ForeignKey(
        "logistics.Fleet", on_delete=models.SET_NULL, null=True, blank=True, related_name='primary_drivers'
    )
    license_number = models.CharField(max_length=50, blank=True, null=True)
    license_expiry = models.DateTimeField(blank=True, null=True)
    # Comma separated categories, e.g. "B1, C2"
    license_categories = models.CharField(max_length=100, blank=True, default="")
    driver_status = models.CharField(max_length=20, choices=DriverStatus.choices, default=DriverStatus.AVAILABLE)

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"


class UserSecondaryFleet(models.Model):
    """
    Extra fleets a driver can be borrowed by.
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='secondary_fleets')
    fleet = models.ForeignKey("logistics.Fleet", on_delete=models.CASCADE, related_name='secondary_members')
    active = models.BooleanField(default=True)

    class Meta:
        unique_together = ("user", "fleet")


class UserSkill(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='user_skills')
    skill = models.ForeignKey("logistics.Skill", on_delete=models.CASCADE, related_name='user_skills')
    expires_at = models.DateTimeField(blank=True, null=True)
    active = models.BooleanField(default=True)


class UserAvailability(models.Model):
    class Days(models.TextChoices):
        MONDAY = "MONDAY", "Monday"
        TUESDAY = "TUESDAY", "Tuesday"
        WEDNESDAY = "WEDNESDAY", "Wednesday"
        THURSDAY = "THURSDAY", "Thursday"
        FRIDAY = "FRIDAY", "Friday"
        SATURDAY = "SATURDAY", "Saturday"
        SUNDAY = "SUNDAY", "Sunday"

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='availability')
    day_of_week = models.CharField(max_length=10, choices=Days.choices)
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_day_off = models.BooleanField(default=False)
    active = models.BooleanField(default=True)
