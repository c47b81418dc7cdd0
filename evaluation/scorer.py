"""Resume scoring against a job role's requirements."""

import logging
import re
from typing import Optional

from evaluation.parser import DEGREE_PATTERN, contains_term
from evaluation.types import JobRoleProfile, ParsedResume, ScoreResult

logger = logging.getLogger(__name__)

# Weights: skills dominate; components the role does not ask for are dropped
# and the rest renormalised.
SKILL_WEIGHT = 70
EXPERIENCE_WEIGHT = 20
EDUCATION_WEIGHT = 10

PARSE_DATA_UNAVAILABLE = "parse data unavailable"
NO_SCOREABLE_REQUIREMENTS = "role lists no scoreable requirements"

REQUIRED_YEARS_PATTERN = re.compile(r"(\d{1,2})\s*\+?\s*(?:years?|yrs?)\b", re.IGNORECASE)


def normalize_skill(skill: str) -> str:
    skill = re.sub(r"\s+", " ", skill.strip().lower())
    return skill.strip(" .,:;()[]-")


def unique_skills(skills: list[str]) -> list[str]:
    """Drop blank and case-insensitive duplicate skills, keeping first occurrence order."""
    seen: set[str] = set()
    result = []
    for skill in skills:
        key = normalize_skill(skill)
        if key and key not in seen:
            seen.add(key)
            result.append(skill.strip())
    return result


def skill_matches(required: str, candidate_skills: list[str]) -> bool:
    """A required skill matches an equal skill or one that mentions it as a whole term."""
    wanted = normalize_skill(required)
    for skill in candidate_skills:
        have = normalize_skill(skill)
        if have == wanted or contains_term(have, wanted):
            return True
    return False


def required_years(requirements: str) -> Optional[int]:
    years = [int(m.group(1)) for m in REQUIRED_YEARS_PATTERN.finditer(requirements or "")]
    years = [y for y in years if 0 < y < 60]
    return max(years) if years else None


def score_resume(parsed: Optional[ParsedResume], job_role: JobRoleProfile) -> ScoreResult:
    """Score a parsed resume against a role.

    The score is an integer in [0, 100]. Adding a matched required skill
    never lowers it. Reasons list every required skill in the role's
    declared order, followed by experience, education and location notes.
    A missing ``parsed`` fails closed with a zero score, and so does a role
    with no key skills, no years requirement and no degree requirement.
    """
    if parsed is None:
        return ScoreResult(score=0, reasons=[PARSE_DATA_UNAVAILABLE])

    reasons: list[str] = []
    weighted = 0.0
    total_weight = 0

    required_skills = unique_skills(job_role.key_skills)
    if required_skills:
        matched = 0
        for skill in required_skills:
            if skill_matches(skill, parsed.skills):
                matched += 1
                reasons.append(f"matched skill: {skill}")
            else:
                reasons.append(f"missing skill: {skill}")
        weighted += SKILL_WEIGHT * matched / len(required_skills)
        total_weight += SKILL_WEIGHT

    needed_years = required_years(job_role.requirements)
    if needed_years:
        have_years = parsed.years_of_experience
        if have_years is None:
            reasons.append(f"experience duration not stated (required {needed_years} yrs)")
            ratio = 0.0
        else:
            reasons.append(f"{have_years:g} yrs experience vs. required {needed_years}")
            ratio = min(1.0, have_years / needed_years)
        weighted += EXPERIENCE_WEIGHT * ratio
        total_weight += EXPERIENCE_WEIGHT

    if DEGREE_PATTERN.search(job_role.requirements or ""):
        degrees = [entry for entry in parsed.education if DEGREE_PATTERN.search(entry)]
        if degrees:
            reasons.append(f"degree requirement met: {degrees[0]}")
            weighted += EDUCATION_WEIGHT
        else:
            reasons.append("no degree found for degree requirement")
        total_weight += EDUCATION_WEIGHT

    if job_role.location and parsed.location:
        role_location = job_role.location.lower()
        candidate_location = parsed.location.lower()
        if role_location in candidate_location or candidate_location in role_location:
            reasons.append(f"location match: {parsed.location}")
        else:
            reasons.append(
                f"location mismatch: candidate in {parsed.location}, role in {job_role.location}"
            )

    if total_weight == 0:
        # Nothing to measure against; qualifying then takes an administrator override
        reasons.append(NO_SCOREABLE_REQUIREMENTS)
        score = 0
    else:
        score = int(round(100 * weighted / total_weight))

    logger.debug("Scored resume for role %r: %d", job_role.title, score)
    return ScoreResult(score=max(0, min(100, score)), reasons=reasons)
