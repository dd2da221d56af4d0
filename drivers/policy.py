"""
Purpose: Central configuration for driver assignment scoring.
What it does:

Stores all tunable thresholds/penalties used when ranking drivers:

LICENSE_NEAR_EXPIRY_DAYS = 30
WORKLOAD_PENALTY_PER_ROUTE = 30
EXPIRED_SKILL_PENALTY = 20
LICENSE_CATEGORY_PENALTY = 50

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields

from dotenv import load_dotenv


@dataclass(frozen=True)
class AssignmentPolicy:
    """
    Central configuration for driver/vehicle assignment scoring.
    """

    # --- Hard constraints ---
    # When True an expired or missing license is an error (excludes the driver),
    # otherwise it is reported as a warning only.
    require_license_valid: bool = True

    # When True a driver covering none of the required skills is excluded.
    require_skills_match: bool = True

    # --- License ---
    # Days before expiry where the license factor starts to decay linearly.
    license_near_expiry_days: int = 30

    # Subtracted from the license factor when the vehicle needs a category
    # the driver does not hold.
    license_category_penalty: int = 50

    # --- Skills ---
    # Subtracted from the skills factor for every expired skill on file.
    expired_skill_penalty: int = 20

    # Expired-but-active skills still count toward coverage (they are penalized
    # separately). Set to False to match only against non-expired skills.
    count_expired_skills: bool = True

    # --- Workload ---
    balance_workload: bool = True
    workload_penalty_per_route: int = 30

    # --- Result sizing ---
    default_limit: int = 5
    max_limit: int = 20

    # Pending stops a replacement driver can carry after a reassignment.
    max_stops_per_driver: int = 50

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.license_near_expiry_days < 0:
            raise ValueError("license_near_expiry_days must be >= 0")

        for name in ("license_category_penalty", "expired_skill_penalty", "workload_penalty_per_route"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be between 0 and 100")

        if self.max_limit < 1:
            raise ValueError("max_limit must be >= 1")

        if not 1 <= self.default_limit <= self.max_limit:
            raise ValueError("default_limit must be between 1 and max_limit")

        if self.max_stops_per_driver <= 0:
            raise ValueError("max_stops_per_driver must be > 0")


def default_assignment_policy() -> AssignmentPolicy:
    """
    Convenience factory for the default policy.
    """
    p = AssignmentPolicy()
    p.validate()
    return p


def policy_from_env(prefix: str = "ASSIGNMENT_") -> AssignmentPolicy:
    """
    Builds a policy from environment variables (or a .env file), e.g.
    ASSIGNMENT_LICENSE_NEAR_EXPIRY_DAYS=15 or ASSIGNMENT_REQUIRE_SKILLS_MATCH=false.
    Unset variables keep their defaults.
    """
    load_dotenv()

    overrides = {}
    for f in fields(AssignmentPolicy):
        raw = os.getenv(prefix + f.name.upper())
        if raw is None:
            continue
        if f.type in ("bool", bool):
            overrides[f.name] = raw.strip().lower() in ("1", "true", "yes", "on")
        else:
            overrides[f.name] = int(raw)

    p = AssignmentPolicy(**overrides)
    p.validate()
    return p
