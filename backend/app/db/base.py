from backend.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.app.models.user import User  # noqa: F401
from backend.app.models.document import Document  # noqa: F401
from backend.app.models.enrollment_form import EnrollmentForm  # noqa: F401
