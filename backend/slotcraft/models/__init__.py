from slotcraft.models.constraint_document import ConstraintDocument  # noqa: F401
from slotcraft.models.generated_timetable import GeneratedTimetable  # noqa: F401
