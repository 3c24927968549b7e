"""
Shared schema types.
"""
from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator

from collab_chat.utils.datetime_utils import ensure_utc

# Timestamps read back from some backends are naive; responses always carry UTC
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]
OptionalUTCDateTime = Annotated[Optional[datetime], AfterValidator(ensure_utc)]
