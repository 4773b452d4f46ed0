"""Reusable Pydantic field types for request payloads.

Job and leasing forms send dates as ISO strings, empty strings, or not at
all, and free-text fields padded with whitespace.  These types normalise
both before validation so services only ever see datetime/None and
trimmed text/None.
"""

from datetime import datetime
from typing import Annotated

from pydantic import BeforeValidator
from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable

from containerops.utils.dates import parse_date_or_none


def strip_or_none(value):
    """Trim strings; blank strings become None."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def loaded_relation(obj, name: str):
    """Return ``obj.name`` only if already loaded.

    Reading an unloaded relationship would trigger lazy IO, which an
    AsyncSession does not allow during response serialisation.
    """
    try:
        state = inspect(obj)
    except NoInspectionAvailable:
        return getattr(obj, name, None)
    if name in state.unloaded:
        return None
    return getattr(obj, name, None)


# Unparseable or absent dates are treated as not provided
LenientDate = Annotated[datetime | None, BeforeValidator(parse_date_or_none)]

OptionalText = Annotated[str | None, BeforeValidator(strip_or_none)]
