from datetime import date, datetime
from typing import Optional, Union

from common.config import logger

DOB_FORMATS = ("%Y-%m-%d", "%m/%d/%Y")


def parse_date_of_birth(dob: Union[str, date, datetime, None]) -> Optional[date]:
    """Accepts a date, a datetime, or a YYYY-MM-DD / MM/DD/YYYY string."""
    if dob is None:
        return None
    if isinstance(dob, datetime):
        return dob.date()
    if isinstance(dob, date):
        return dob
    if isinstance(dob, str):
        s = dob.strip()
        for fmt in DOB_FORMATS:
            try:
                return datetime.strptime(s, fmt).date()
            except ValueError:
                continue
    logger.warning(f"Unrecognised date of birth: {dob!r}")
    return None


def calculate_chronological_age(dob: Union[str, date, datetime, None], today: Optional[date] = None) -> Optional[int]:
    """Whole years since ``dob``; None if the date cannot be read or lies in the future."""
    born = parse_date_of_birth(dob)
    if born is None:
        return None
    today = today or date.today()
    if born > today:
        logger.warning(f"Date of birth {born.isoformat()} is in the future")
        return None
    return today.year - born.year - (1 if (today.month, today.day) < (born.month, born.day) else 0)
