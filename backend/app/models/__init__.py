"""ORM Models: SQLAlchemy declarative models for every indicator table.

Invariants:
    - All models inherit from Base (db/base.py)
    - Every indicator table has a unique natural key used by the upsert helpers

Design Decisions:
    - One file per indicator family
    - All models imported here so Base.metadata is complete for create_all and Alembic
"""

from app.models.dollar_rate import DollarRate  # noqa: F401
from app.models.emae import Emae, EmaeByActivity  # noqa: F401
from app.models.ipc import Ipc  # noqa: F401
from app.models.embi_risk import EmbiRisk  # noqa: F401
from app.models.bcra_index import Cer, Uva  # noqa: F401
from app.models.labor_market import LaborMarket  # noqa: F401
from app.models.poverty import PovertyData  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.api_request import ApiRequest  # noqa: F401
from app.models.cron_execution import CronExecution  # noqa: F401
from app.models.economic_calendar import EconomicCalendarEvent  # noqa: F401
