#Purpose: Non-scoring eligibility filtering (fleet membership gate).
#Builds the base candidate set before scoring/ranking.
#Responsibilities:
#same tenant
#active drivers only
#primary fleet OR active secondary fleet membership in the requested fleets
#caller exclusions (e.g. the absent driver being replaced)
#Status, license and skills are NOT filtered here: they become scoring errors.
#Output: "fleet-qualified drivers" (still not ranked, no ordering guarantee).

from typing import Iterable, List, Optional, Sequence

from drivers.models import Driver


def build_base_candidates(
    drivers: Iterable[Driver],
    fleet_ids: Optional[Sequence[str]],
    *,
    company_id: Optional[str] = None,
    exclude_driver_ids: Iterable[str] = (),
) -> List[Driver]:
    """
    Returns active drivers belonging (primary or secondary) to any of `fleet_ids`.
    An empty/None `fleet_ids` applies no fleet restriction.
    """
    excluded = set(exclude_driver_ids)
    fleets = set(fleet_ids or ())

    candidates = []
    for driver in drivers:
        if not driver.active or driver.id in excluded:
            continue
        if company_id is not None and driver.company_id != company_id:
            continue
        if fleets and not driver.belongs_to_any(fleets):
            continue
        candidates.append(driver)

    return candidates
