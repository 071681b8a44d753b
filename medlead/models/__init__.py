# Models package — import all models here so Alembic can discover them.

from medlead.models.user import User  # noqa: F401
from medlead.models.pipeline import Pipeline  # noqa: F401
from medlead.models.indication import Indication  # noqa: F401
from medlead.models.lead import Lead  # noqa: F401
from medlead.models.event import Event  # noqa: F401
from medlead.models.page import Page, Block  # noqa: F401
from medlead.models.audit import AuditEvent  # noqa: F401
