"""Academic years, terms (semesters) and the subject catalogue."""
from datetime import datetime

from fastapi import APIRouter, HTTPException

from app.api.deps import AdminOnly, CurrentUser, parse_object_id
from app.models.academic_year import AcademicYear, AcademicYearCreate, Term, TermCreate, TermUpdate
from app.models.course import Course
from app.models.subject import Subject, SubjectCreate
from app.services.academic_year import find_or_create_academic_year, set_active_academic_year

router = APIRouter()


def _term_out(term: Term, years: dict[str, AcademicYear]) -> dict:
    year = years.get(term.academic_year_id)
    return {
        "id": str(term.id),
        "academic_year_id": term.academic_year_id,
        "academic_year_name": year.name if year else None,
        "type": term.type,
        "start_date": term.start_date,
        "end_date": term.end_date,
        "is_active": term.is_active,
    }


@router.get("/years")
async def list_academic_years(user: CurrentUser):
    years = await AcademicYear.find_all().sort("-start_date").to_list()
    return [
        {
            "id": str(y.id),
            "name": y.name,
            "start_date": y.start_date,
            "end_date": y.end_date,
            "is_active": y.is_active,
        }
        for y in years
    ]


@router.post("/years", status_code=201)
async def create_academic_year(data: AcademicYearCreate, admin: AdminOnly):
    if await AcademicYear.find_one(AcademicYear.name == data.name):
        raise HTTPException(status_code=400, detail="Academic year already exists")
    year = AcademicYear(**data.model_dump())
    await year.insert()
    return {"id": str(year.id), "name": year.name}


@router.post("/years/{year_id}/activate")
async def activate_academic_year(year_id: str, admin: AdminOnly):
    year = await AcademicYear.get(parse_object_id(year_id, "academic year id"))
    if not year:
        raise HTTPException(status_code=404, detail="Academic year not found")
    await set_active_academic_year(year)
    return {"status": "success", "active": year.name}


@router.get("/terms")
async def list_terms(user: CurrentUser):
    terms = await Term.active().sort("-start_date").to_list()
    years = {str(y.id): y for y in await AcademicYear.find_all().to_list()}
    result = []
    for t in terms:
        item = _term_out(t, years)
        item["course_count"] = await Course.active(Course.term_id == str(t.id)).count()
        result.append(item)
    return result


@router.post("/terms", status_code=201)
async def create_term(data: TermCreate, admin: AdminOnly):
    year = await find_or_create_academic_year(data.academic_year_name, data.start_date, data.end_date)
    duplicate = await Term.active(
        Term.academic_year_id == str(year.id), Term.type == data.type
    ).first_or_none()
    if duplicate:
        raise HTTPException(status_code=400, detail="This semester already exists for the academic year")
    term = Term(
        academic_year_id=str(year.id),
        type=data.type,
        start_date=data.start_date,
        end_date=data.end_date,
    )
    await term.insert()
    return _term_out(term, {str(year.id): year})


async def _get_term(term_id: str) -> Term:
    term = await Term.get_active(parse_object_id(term_id, "term id"))
    if not term:
        raise HTTPException(status_code=404, detail="Term not found")
    return term


@router.patch("/terms/{term_id}")
async def update_term(term_id: str, data: TermUpdate, admin: AdminOnly):
    term = await _get_term(term_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(term, key, value)
    if term.end_date < term.start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    term.updated_at = datetime.utcnow()
    await term.save()
    return {"id": str(term.id), "is_active": term.is_active}


@router.post("/terms/{term_id}/toggle")
async def toggle_term(term_id: str, admin: AdminOnly):
    term = await _get_term(term_id)
    term.is_active = not term.is_active
    term.updated_at = datetime.utcnow()
    await term.save()
    return {"id": str(term.id), "is_active": term.is_active}


@router.delete("/terms/{term_id}", status_code=204)
async def delete_term(term_id: str, admin: AdminOnly):
    term = await _get_term(term_id)
    await term.soft_delete()
    return None


@router.get("/subjects")
async def list_subjects(user: CurrentUser):
    subjects = await Subject.find_all().sort("name").to_list()
    return [{**s.model_dump(exclude={"id"}), "id": str(s.id)} for s in subjects]


@router.post("/subjects", status_code=201)
async def create_subject(data: SubjectCreate, admin: AdminOnly):
    if await Subject.find_one(Subject.code == data.code):
        raise HTTPException(status_code=400, detail="Subject code already exists")
    subject = Subject(**data.model_dump())
    await subject.insert()
    return {**subject.model_dump(exclude={"id"}), "id": str(subject.id)}
