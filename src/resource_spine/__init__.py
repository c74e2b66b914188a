"""
resource-spine — reconciler core for declaratively managed RDS resources.

Subpackages:
- resource_spine.core: enums, errors, logging, settings
- resource_spine.rules: fault classification and rule tables
- resource_spine.orchestration: progress records, pipelines, exec-once, probing
- resource_spine.rds: DB instance and DB parameter group reconcilers
"""

__version__ = "0.1.0"
