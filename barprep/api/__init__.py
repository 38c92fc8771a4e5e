"""API route package — imports all routers for main.py."""

from barprep.api.health import router as health_router  # noqa: F401
from barprep.api.users import router as users_router  # noqa: F401
from barprep.api.sessions import router as sessions_router  # noqa: F401
from barprep.api.questions import router as questions_router  # noqa: F401
from barprep.api.responses import router as responses_router  # noqa: F401
from barprep.api.chat import router as chat_router  # noqa: F401
from barprep.api.recommendations import router as recommendations_router  # noqa: F401
