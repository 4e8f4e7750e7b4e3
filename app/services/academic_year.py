from datetime import date, datetime
from typing import Optional

from app.models.academic_year import AcademicYear, Term


async def get_active_terms() -> list[Term]:
    return await Term.active(Term.is_active == True).to_list()


async def get_active_term_ids() -> list[str]:
    return [str(t.id) for t in await get_active_terms()]


async def find_or_create_academic_year(name: str, start_date: datetime, end_date: datetime) -> AcademicYear:
    """Look up a year by name, creating an inactive one spanning the given window."""
    year = await AcademicYear.find_one(AcademicYear.name == name)
    if year:
        return year
    year = AcademicYear(name=name, start_date=start_date, end_date=end_date, is_active=False)
    await year.insert()
    return year


async def set_active_academic_year(year: AcademicYear) -> None:
    """Mark ``year`` active; exactly one year is active at a time."""
    await AcademicYear.find(AcademicYear.id != year.id).update({"$set": {"is_active": False}})
    if not year.is_active:
        year.is_active = True
        year.updated_at = datetime.utcnow()
        await year.save()


async def get_active_academic_year() -> Optional[AcademicYear]:
    return await AcademicYear.find_one(AcademicYear.is_active == True)


def terms_containing(terms: list[Term], day: date) -> dict[str, Term]:
    return {str(t.id): t for t in terms if t.contains(day)}
