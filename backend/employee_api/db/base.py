# Import all the models, so that Base has them before create_all runs
from employee_api.db.base_class import Base  # noqa

from employee_api.models.employee import Employee  # noqa
from employee_api.models.user import User  # noqa
