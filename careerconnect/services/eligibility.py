"""
Eligibility rules for course applications and job matching.

Pure functions over already-fetched documents:
- course requirements (specific per course, or general per level)
- job qualification (education, grade, skills, experience)
- job preferences (industry, type, location, salary)
- profile completion percentage
"""

from typing import Optional

NOT_SPECIFIED = "Not specified"

QUALIFICATION_REQUIREMENTS = {
    "undergraduate": {"min_education": "high_school", "min_grade": "C"},
    "postgraduate": {"min_education": "bachelors", "min_grade": "B"},
    "diploma": {"min_education": "high_school", "min_grade": "D"},
    "certificate": {"min_education": "high_school", "min_grade": "E"},
}

EDUCATION_HIERARCHY = {
    "high_school": 1,
    "certificate": 2,
    "diploma": 3,
    "bachelors": 4,
    "masters": 5,
    "phd": 6,
}

GRADE_HIERARCHY = {"A": 5, "B": 4, "C": 3, "D": 2, "E": 1, "F": 0}


def _result(eligible: bool, reason: str) -> dict:
    return {"eligible": eligible, "reason": reason}


def _education_rank(level: Optional[str]) -> int:
    return EDUCATION_HIERARCHY.get((level or "").lower(), 0)


def _grade_rank(grade: Optional[str]) -> int:
    return GRADE_HIERARCHY.get((grade or "").upper(), 0)


def _has_value(value) -> bool:
    return bool(value) and value != NOT_SPECIFIED


def _qualifications(student: dict) -> dict:
    return student.get("qualifications") or {}


# ============================================================
# COURSE ELIGIBILITY
# ============================================================

def check_specific_requirements(student: dict, requirements: dict) -> dict:
    """Check a student against a course's own requirements."""
    quals = _qualifications(student)
    education = quals.get("education_level")
    grade = quals.get("overall_grade")

    if requirements.get("min_education"):
        if _education_rank(education) < _education_rank(requirements["min_education"]):
            return _result(False, f"Requires {requirements['min_education']} education level")

    if requirements.get("min_grade") and _has_value(grade):
        if _grade_rank(grade) < _grade_rank(requirements["min_grade"]):
            return _result(False, f"Requires minimum grade {requirements['min_grade']}")

    return _result(True, "Meets all requirements")


def check_general_requirements(student: dict, course: dict) -> dict:
    """Check a student against the default requirements for the course level.

    Levels without their own rules use the undergraduate ones.
    """
    level = (course.get("level") or "undergraduate").lower()
    requirements = QUALIFICATION_REQUIREMENTS.get(level, QUALIFICATION_REQUIREMENTS["undergraduate"])

    quals = _qualifications(student)
    if _education_rank(quals.get("education_level")) < _education_rank(requirements["min_education"]):
        return _result(False, f"Requires {requirements['min_education']} education level for {level} courses")

    grade = quals.get("overall_grade")
    if _has_value(grade) and _grade_rank(grade) < _grade_rank(requirements["min_grade"]):
        return _result(False, f"Requires minimum grade {requirements['min_grade']} for {level} courses")

    return _result(True, "Meets general requirements")


def check_course_eligibility(student: dict, course: dict) -> dict:
    if course.get("requirements"):
        return check_specific_requirements(student, course["requirements"])
    return check_general_requirements(student, course)


# ============================================================
# JOB MATCHING
# ============================================================

def check_job_qualification(student: dict, job: dict) -> bool:
    requirements = job.get("requirements") or {}
    if not requirements:
        return True

    quals = _qualifications(student)

    if requirements.get("min_education"):
        if _education_rank(quals.get("education_level")) < _education_rank(requirements["min_education"]):
            return False

    if requirements.get("min_grade") and _has_value(quals.get("overall_grade")):
        if _grade_rank(quals["overall_grade"]) < _grade_rank(requirements["min_grade"]):
            return False

    required_skills = requirements.get("skills") or []
    if required_skills:
        student_skills = set(student.get("skills") or [])
        if not all(skill in student_skills for skill in required_skills):
            return False

    min_experience = requirements.get("min_experience")
    experience = student.get("experience")
    if min_experience and experience:
        try:
            if float(experience) < float(min_experience):
                return False
        except (TypeError, ValueError):
            return False

    return True


def check_job_preferences(student: dict, job: dict) -> bool:
    preferences = student.get("job_preferences") or {}
    if not preferences:
        return True

    industries = preferences.get("industries") or []
    if industries and job.get("industry") not in industries:
        return False

    job_types = preferences.get("job_types") or []
    if job_types and job.get("job_type") not in job_types:
        return False

    locations = preferences.get("locations") or []
    if locations and job.get("location") not in locations:
        return False

    min_salary = preferences.get("min_salary")
    if min_salary and job.get("salary") is not None:
        try:
            if float(job["salary"]) < float(min_salary):
                return False
        except (TypeError, ValueError):
            pass

    return True


def calculate_match_score(job: dict) -> int:
    """25 points per requirement the job actually specifies."""
    requirements = job.get("requirements") or {}
    score = 0
    if requirements.get("min_education"):
        score += 25
    if requirements.get("min_grade"):
        score += 25
    if requirements.get("skills") is not None:
        score += 25
    if requirements.get("min_experience"):
        score += 25
    return score


# ============================================================
# PROFILE COMPLETION
# ============================================================

PROFILE_FIELDS = ("full_name", "email", "phone", "address", "date_of_birth")


def calculate_profile_completion(profile: dict) -> int:
    score = 0
    for name in PROFILE_FIELDS:
        if profile.get(name):
            score += 10

    quals = _qualifications(profile)
    if _has_value(quals.get("education_level")):
        score += 15
    if _has_value(quals.get("overall_grade")):
        score += 15

    preferences = profile.get("job_preferences") or {}
    if preferences.get("industries"):
        score += 10
    if preferences.get("job_types"):
        score += 10

    if profile.get("resume_url"):
        score += 10

    return min(score, 100)
