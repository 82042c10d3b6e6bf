# app/schemas/common.py
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from app.core.timeutils import to_naive_utc

# Incoming timestamps are stored as naive UTC
UtcDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]
