"""RDS reconcilers.

Architecture::

    models.py              DBInstance, DBParameterGroup, Parameter, Tag, DBInstanceRole
    client.py              ProxyClient over boto3, make_clients()
    translator.py          request builders, response translation
    immutability.py        is_change_mutable()
    rule_sets.py           RDS rule set names (tables in rules/data/rds.yaml)
    base.py                RdsHandler, fetch helpers, tag diff
    db_instance.py         DBInstanceUpdateHandler
    db_parameter_group.py  DBParameterGroupCreateHandler, DBParameterGroupUpdateHandler
"""
