"""Request builders and response translation for the RDS and EC2 APIs.

Every builder returns the keyword arguments of one boto3 call; nothing here
talks to the network.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from resource_spine.rds.models import DBInstance, DBInstanceRole, DBParameterGroup, Parameter, Tag

APPLY_IMMEDIATE = "immediate"
APPLY_PENDING_REBOOT = "pending-reboot"

# ModifyDBInstance argument -> DBInstance attribute
_MODIFIABLE: dict[str, str] = {
    "DBInstanceClass": "db_instance_class",
    "EngineVersion": "engine_version",
    "DBParameterGroupName": "db_parameter_group_name",
    "OptionGroupName": "option_group_name",
    "StorageType": "storage_type",
    "AllocatedStorage": "allocated_storage",
    "MaxAllocatedStorage": "max_allocated_storage",
    "Iops": "iops",
    "BackupRetentionPeriod": "backup_retention_period",
    "MultiAZ": "multi_az",
    "PubliclyAccessible": "publicly_accessible",
    "PreferredBackupWindow": "preferred_backup_window",
    "PreferredMaintenanceWindow": "preferred_maintenance_window",
    "AutoMinorVersionUpgrade": "auto_minor_version_upgrade",
    "CACertificateIdentifier": "ca_certificate_identifier",
    "DeletionProtection": "deletion_protection",
    "MasterUserPassword": "master_user_password",
    "VpcSecurityGroupIds": "vpc_security_groups",
    "DBSecurityGroups": "db_security_groups",
}


# =============================================================================
# DB instance
# =============================================================================


def describe_db_instances_request(model: DBInstance) -> dict[str, Any]:
    return {"DBInstanceIdentifier": model.db_instance_identifier}


def modify_db_instance_request(
    previous: DBInstance | None,
    desired: DBInstance,
    rollback: bool = False,
) -> dict[str, Any]:
    """
    Arguments for ModifyDBInstance carrying only the changed properties.

    On rollback, storage is never shrunk and the engine version is never
    downgraded; the service rejects both.
    """
    request: dict[str, Any] = {
        "DBInstanceIdentifier": desired.db_instance_identifier,
        "ApplyImmediately": True,
    }
    for argument, attr in _MODIFIABLE.items():
        value = getattr(desired, attr)
        if value is None:
            continue
        if previous is not None and getattr(previous, attr) == value:
            continue
        request[argument] = value

    if rollback and previous is not None:
        if (
            "AllocatedStorage" in request
            and previous.allocated_storage is not None
            and desired.allocated_storage is not None
            and desired.allocated_storage < previous.allocated_storage
        ):
            del request["AllocatedStorage"]
        request.pop("EngineVersion", None)

    if "EngineVersion" in request and desired.allow_major_version_upgrade:
        request["AllowMajorVersionUpgrade"] = True
    return request


def reboot_db_instance_request(model: DBInstance) -> dict[str, Any]:
    return {"DBInstanceIdentifier": model.db_instance_identifier}


def add_role_to_db_instance_request(model: DBInstance, role: DBInstanceRole) -> dict[str, Any]:
    request = {"DBInstanceIdentifier": model.db_instance_identifier, "RoleArn": role.role_arn}
    if role.feature_name is not None:
        request["FeatureName"] = role.feature_name
    return request


def remove_role_from_db_instance_request(model: DBInstance, role: DBInstanceRole) -> dict[str, Any]:
    request = {"DBInstanceIdentifier": model.db_instance_identifier, "RoleArn": role.role_arn}
    if role.feature_name is not None:
        request["FeatureName"] = role.feature_name
    return request


def describe_db_engine_versions_request(family: str, engine: str | None, engine_version: str | None) -> dict[str, Any]:
    request: dict[str, Any] = {"DBParameterGroupFamily": family}
    if engine is not None:
        request["Engine"] = engine
    if engine_version is not None:
        request["EngineVersion"] = engine_version
    return request


def describe_security_groups_request(vpc_id: str, group_name: str) -> dict[str, Any]:
    return {
        "Filters": [
            {"Name": "vpc-id", "Values": [vpc_id]},
            {"Name": "group-name", "Values": [group_name]},
        ]
    }


def translate_db_instance_from_api(data: Mapping[str, Any]) -> DBInstance:
    """Observed DB instance from a DescribeDBInstances entry."""
    parameter_groups = data.get("DBParameterGroups") or []
    endpoint = data.get("Endpoint") or {}
    return DBInstance(
        db_instance_identifier=data.get("DBInstanceIdentifier"),
        db_instance_arn=data.get("DBInstanceArn"),
        engine=data.get("Engine"),
        engine_version=data.get("EngineVersion"),
        db_instance_class=data.get("DBInstanceClass"),
        db_parameter_group_name=(
            parameter_groups[0].get("DBParameterGroupName") if parameter_groups else None
        ),
        db_subnet_group_name=(data.get("DBSubnetGroup") or {}).get("DBSubnetGroupName"),
        storage_type=data.get("StorageType"),
        allocated_storage=data.get("AllocatedStorage"),
        max_allocated_storage=data.get("MaxAllocatedStorage"),
        iops=data.get("Iops"),
        port=endpoint.get("Port"),
        backup_retention_period=data.get("BackupRetentionPeriod"),
        multi_az=data.get("MultiAZ"),
        publicly_accessible=data.get("PubliclyAccessible"),
        preferred_backup_window=data.get("PreferredBackupWindow"),
        preferred_maintenance_window=data.get("PreferredMaintenanceWindow"),
        auto_minor_version_upgrade=data.get("AutoMinorVersionUpgrade"),
        ca_certificate_identifier=data.get("CACertificateIdentifier"),
        deletion_protection=data.get("DeletionProtection"),
        storage_encrypted=data.get("StorageEncrypted"),
        kms_key_id=data.get("KmsKeyId"),
        master_username=data.get("MasterUsername"),
        availability_zone=data.get("AvailabilityZone"),
        endpoint_address=endpoint.get("Address"),
        vpc_security_groups=[
            g["VpcSecurityGroupId"] for g in data.get("VpcSecurityGroups") or []
        ] or None,
        associated_roles=[
            DBInstanceRole(role_arn=r["RoleArn"], feature_name=r.get("FeatureName"))
            for r in data.get("AssociatedRoles") or []
        ] or None,
        tags=[Tag(key=t["Key"], value=t.get("Value")) for t in data.get("TagList") or []] or None,
    )


# =============================================================================
# Tags
# =============================================================================


def translate_tags_from_request(tags: Mapping[str, str] | None) -> set[Tag]:
    return {Tag(key=k, value=v) for k, v in (tags or {}).items()}


def add_tags_to_resource_request(arn: str, tags: Iterable[Tag]) -> dict[str, Any]:
    return {
        "ResourceName": arn,
        "Tags": [t.to_dict() for t in sorted(tags, key=lambda t: t.key)],
    }


def remove_tags_from_resource_request(arn: str, tags: Iterable[Tag]) -> dict[str, Any]:
    return {"ResourceName": arn, "TagKeys": sorted(t.key for t in tags)}


# =============================================================================
# DB parameter group
# =============================================================================


def create_db_parameter_group_request(model: DBParameterGroup, tags: Iterable[Tag]) -> dict[str, Any]:
    request: dict[str, Any] = {
        "DBParameterGroupName": model.db_parameter_group_name,
        "DBParameterGroupFamily": model.family,
        "Description": model.description or "",
    }
    tag_list = [t.to_dict() for t in sorted(tags, key=lambda t: t.key)]
    if tag_list:
        request["Tags"] = tag_list
    return request


def describe_db_parameter_groups_request(name: str) -> dict[str, Any]:
    return {"DBParameterGroupName": name}


def describe_engine_default_parameters_request(model: DBParameterGroup) -> dict[str, Any]:
    return {"DBParameterGroupFamily": model.family}


def describe_db_parameters_request(model: DBParameterGroup) -> dict[str, Any]:
    return {"DBParameterGroupName": model.db_parameter_group_name}


def build_parameter_with_new_value(new_value: str, parameter: Parameter) -> Parameter:
    """Copy of ``parameter`` carrying ``new_value`` and an apply method for its type."""
    apply_method = APPLY_PENDING_REBOOT if parameter.apply_type == "static" else APPLY_IMMEDIATE
    return Parameter(
        name=parameter.name,
        value=new_value,
        is_modifiable=parameter.is_modifiable,
        apply_method=apply_method,
        apply_type=parameter.apply_type,
    )


def modify_db_parameter_group_request(
    model: DBParameterGroup, parameters: Iterable[Parameter]
) -> dict[str, Any]:
    return {
        "DBParameterGroupName": model.db_parameter_group_name,
        "Parameters": [p.to_api() for p in parameters],
    }


def reset_db_parameters_request(model: DBParameterGroup, parameters: Iterable[Parameter]) -> dict[str, Any]:
    return {
        "DBParameterGroupName": model.db_parameter_group_name,
        "ResetAllParameters": False,
        "Parameters": [
            {
                "ParameterName": p.name,
                "ApplyMethod": APPLY_PENDING_REBOOT if p.apply_type == "static" else APPLY_IMMEDIATE,
            }
            for p in parameters
        ],
    }


def translate_db_parameter_group_from_api(
    data: Mapping[str, Any], parameters: Mapping[str, Any] | None = None
) -> DBParameterGroup:
    return DBParameterGroup(
        db_parameter_group_name=data.get("DBParameterGroupName"),
        family=data.get("DBParameterGroupFamily"),
        description=data.get("Description"),
        parameters=dict(parameters) if parameters is not None else None,
    )
