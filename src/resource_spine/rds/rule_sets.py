"""Names of the RDS classification tables.

The tables themselves live in ``resource_spine/rules/data/rds.yaml``.
Handlers look sets up by name through their ``HandlerConfig`` so an operator
rules file can override them.
"""

DB_INSTANCE = "db-instance"
DB_INSTANCE_MODIFY = "db-instance-modify"
DB_INSTANCE_REBOOT = "db-instance-reboot"
DB_INSTANCE_ROLES = "db-instance-roles"
DB_INSTANCE_SOFT_FAIL_TAG = "db-instance-soft-fail-tag"
DB_PARAMETER_GROUP = "db-parameter-group"
DB_PARAMETER_GROUP_SOFT_FAIL_TAG = "db-parameter-group-soft-fail-tag"
