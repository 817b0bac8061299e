from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple

from django.conf import settings
from django.utils import timezone

from donor import models as dmodels
from blood import models as bmodels


@dataclass(frozen=True)
class MatchCandidate:
    donor: dmodels.Donor
    score: float
    last_completed_donation: Optional[date]
    reasons: Tuple[str, ...]

    @property
    def donor_id(self) -> int:
        return self.donor.pk

    def as_dict(self) -> dict:
        return {
            "donor_id": self.donor.pk,
            "name": self.donor.get_name,
            "bloodgroup": self.donor.bloodgroup,
            "city": self.donor.city,
            "score": self.score,
            "last_completed_donation": self.last_completed_donation.isoformat() if self.last_completed_donation else None,
            "reasons": list(self.reasons),
        }


def _get_weights() -> dict:
    default = {
        "base": 100.0,
        "same_city": 20.0,
        "first_time_bonus": 5.0,
        "recent_donor_penalty": 10.0,
        "young_donor_bonus": 10.0,
    }
    configured = getattr(settings, "MATCH_SCORE_WEIGHTS", None)
    if isinstance(configured, dict):
        default.update({k: float(v) for k, v in configured.items() if v is not None})
    return default


def _get_recent_days() -> int:
    return int(getattr(settings, "DONATION_RECENT_DAYS", 90))


def _get_result_limit() -> int:
    return int(getattr(settings, "MATCHING_RESULT_LIMIT", 20))


def _same_city(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a and b) and a.strip().lower() == b.strip().lower()


def score_donor(
    blood_request: bmodels.BloodRequest,
    donor: dmodels.Donor,
    last_completed_donation: Optional[date],
    *,
    today: Optional[date] = None,
    weights: Optional[dict] = None,
) -> Tuple[float, Tuple[str, ...]]:
    """Score one donor against a request; returns ``(score, reasons)``.

    Independent of the eligibility filter so it stays valid if locality
    or deferral constraints are relaxed there.
    """

    weights = weights or _get_weights()
    today = today or timezone.localdate()

    score = weights["base"]
    reasons: List[str] = [f"Blood group: {donor.get_bloodgroup_display()}"]

    if _same_city(donor.city, blood_request.city):
        score += weights["same_city"]
        reasons.append(f"Same city as request ({blood_request.city})")

    if last_completed_donation is None:
        score += weights["first_time_bonus"]
        reasons.append("First-time donor")
    else:
        days_since = (today - last_completed_donation).days
        reasons.append(f"Last donated {days_since} day(s) ago")
        if days_since < _get_recent_days():
            score -= weights["recent_donor_penalty"]

    age = donor.age_on(today)
    if age is not None:
        reasons.append(f"Age: {age}")
        if 18 <= age <= 30:
            score += weights["young_donor_bonus"]

    return score, tuple(reasons)


def rank_donors(
    blood_request: bmodels.BloodRequest,
    donors: Sequence[dmodels.Donor],
    *,
    today: Optional[date] = None,
    limit: Optional[int] = None,
) -> List[MatchCandidate]:
    """Order eligible donors by score, highest first.

    Equal scores keep their input order. ``donors`` may carry a
    ``last_completed_donation`` annotation (see ``eligibility.find_eligible``);
    otherwise the donor's ``last_donated_at`` is used.
    """

    weights = _get_weights()
    today = today or timezone.localdate()
    limit = _get_result_limit() if limit is None else limit

    candidates: List[MatchCandidate] = []
    for donor in donors:
        last_completed = getattr(donor, "last_completed_donation", donor.last_donated_at)
        score, reasons = score_donor(blood_request, donor, last_completed, today=today, weights=weights)
        candidates.append(
            MatchCandidate(
                donor=donor,
                score=score,
                last_completed_donation=last_completed,
                reasons=reasons,
            )
        )

    # sorted() is stable, so ties stay in query order
    ranked = sorted(candidates, key=lambda c: c.score, reverse=True)
    return ranked[: max(0, int(limit))]
