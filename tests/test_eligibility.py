from careerconnect.services import eligibility


def student(education="high_school", grade="B", **extra):
    return {"qualifications": {"education_level": education, "overall_grade": grade}, **extra}


def test_general_requirements_follow_course_level():
    assert eligibility.check_general_requirements(student("high_school", "C"), {"level": "undergraduate"})["eligible"]

    result = eligibility.check_general_requirements(student("high_school", "A"), {"level": "postgraduate"})
    assert result == {
        "eligible": False,
        "reason": "Requires bachelors education level for postgraduate courses",
    }

    result = eligibility.check_general_requirements(student("diploma", "D"), {"level": "undergraduate"})
    assert not result["eligible"]
    assert "minimum grade C" in result["reason"]


def test_unknown_level_uses_undergraduate_rules():
    result = eligibility.check_general_requirements(student("high_school", "F"), {"level": "short-course"})
    assert result == {
        "eligible": False,
        "reason": "Requires minimum grade C for short-course courses",
    }

    assert not eligibility.check_general_requirements(student("Not specified"), {"level": "short-course"})["eligible"]
    assert eligibility.check_general_requirements(student("high_school", "C"), {"level": "short-course"})["eligible"]


def test_grade_is_only_checked_when_student_has_one():
    course = {"requirements": {"min_education": "high_school", "min_grade": "A"}}

    assert eligibility.check_course_eligibility(student(grade="Not specified"), course)["eligible"]
    assert not eligibility.check_course_eligibility(student(grade="C"), course)["eligible"]


def test_specific_requirements_take_precedence():
    course = {"level": "postgraduate", "requirements": {"min_education": "diploma"}}

    assert eligibility.check_course_eligibility(student("diploma", "E"), course)["eligible"]


def test_job_qualification_checks_skills_and_experience():
    job = {"requirements": {"min_education": "diploma", "skills": ["python", "sql"], "min_experience": 2}}

    assert eligibility.check_job_qualification(
        student("bachelors", skills=["python", "sql", "git"], experience=3), job
    )
    assert not eligibility.check_job_qualification(student("bachelors", skills=["python"], experience=3), job)
    assert not eligibility.check_job_qualification(
        student("bachelors", skills=["python", "sql"], experience=1), job
    )
    # experience is not held against students who did not state any
    assert eligibility.check_job_qualification(student("bachelors", skills=["python", "sql"]), job)
    assert not eligibility.check_job_qualification(student("high_school", skills=["python", "sql"]), job)


def test_job_preferences():
    prefs = {"job_preferences": {"industries": ["Tech"], "job_types": [], "locations": ["Maseru"], "min_salary": 5000}}

    assert eligibility.check_job_preferences(prefs, {"industry": "Tech", "location": "Maseru", "salary": 6000})
    assert not eligibility.check_job_preferences(prefs, {"industry": "Mining", "location": "Maseru"})
    assert not eligibility.check_job_preferences(prefs, {"industry": "Tech", "location": "Leribe"})
    assert not eligibility.check_job_preferences(prefs, {"industry": "Tech", "location": "Maseru", "salary": 4000})
    assert eligibility.check_job_preferences({}, {"industry": "Anything"})


def test_match_score_counts_specified_requirements():
    assert eligibility.calculate_match_score({}) == 0
    assert eligibility.calculate_match_score({"requirements": {"min_education": "diploma", "skills": ["x"]}}) == 50
    # an empty skills list still counts as specified
    assert eligibility.calculate_match_score({"requirements": {"min_grade": "C", "skills": []}}) == 50
    assert eligibility.calculate_match_score({"requirements": {"min_grade": "C", "skills": None}}) == 25


def test_profile_completion():
    empty = {"qualifications": {"education_level": "Not specified", "overall_grade": "Not specified"}}
    assert eligibility.calculate_profile_completion(empty) == 0

    full = {
        "full_name": "Lerato M",
        "email": "lerato@example.com",
        "phone": "555",
        "address": "Maseru",
        "date_of_birth": "2002-01-01",
        "qualifications": {"education_level": "high_school", "overall_grade": "B"},
        "job_preferences": {"industries": ["Tech"], "job_types": ["full-time"]},
        "resume_url": "/api/files/1",
    }
    assert eligibility.calculate_profile_completion(full) == 100
