"""Central registry for SQLAlchemy models with string-based relationships.

Importing this module loads all ORM classes that may be referenced by string to
avoid mapper configuration errors when individual models are imported in
isolation (the jobs runner does not import the API router graph).
"""

from stacka.domain.households import db_models as household_db_models  # noqa: F401
from stacka.domain.expenses import db_models as expense_db_models  # noqa: F401
from stacka.domain.recurring_expenses import db_models as recurring_db_models  # noqa: F401
from stacka.domain.incomes import db_models as income_db_models  # noqa: F401
