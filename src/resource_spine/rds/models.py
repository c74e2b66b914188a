"""Resource models for the RDS reconcilers.

Models use the property names of the declarative template on the wire
(``DBInstanceIdentifier``, ``VPCSecurityGroups`` …) and snake_case in Python.
``from_dict`` ignores unknown properties; ``to_dict`` omits unset ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


def _int_or_none(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class Tag:
    key: str
    value: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Tag:
        return cls(key=data["Key"], value=data.get("Value"))

    def to_dict(self) -> dict[str, Any]:
        return {"Key": self.key, "Value": self.value}


@dataclass(frozen=True)
class DBInstanceRole:
    """An IAM role associated with a DB instance for one feature."""

    role_arn: str
    feature_name: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DBInstanceRole:
        return cls(role_arn=data["RoleArn"], feature_name=data.get("FeatureName"))

    def to_dict(self) -> dict[str, Any]:
        result = {"RoleArn": self.role_arn}
        if self.feature_name is not None:
            result["FeatureName"] = self.feature_name
        return result


# Wire name -> attribute name for the scalar DBInstance properties
_DB_INSTANCE_SCALARS: dict[str, str] = {
    "DBInstanceIdentifier": "db_instance_identifier",
    "DBInstanceArn": "db_instance_arn",
    "Engine": "engine",
    "EngineVersion": "engine_version",
    "DBInstanceClass": "db_instance_class",
    "DBParameterGroupName": "db_parameter_group_name",
    "DBSubnetGroupName": "db_subnet_group_name",
    "OptionGroupName": "option_group_name",
    "StorageType": "storage_type",
    "MultiAZ": "multi_az",
    "PubliclyAccessible": "publicly_accessible",
    "PreferredBackupWindow": "preferred_backup_window",
    "PreferredMaintenanceWindow": "preferred_maintenance_window",
    "AutoMinorVersionUpgrade": "auto_minor_version_upgrade",
    "AllowMajorVersionUpgrade": "allow_major_version_upgrade",
    "CACertificateIdentifier": "ca_certificate_identifier",
    "DeletionProtection": "deletion_protection",
    "StorageEncrypted": "storage_encrypted",
    "KmsKeyId": "kms_key_id",
    "MasterUsername": "master_username",
    "MasterUserPassword": "master_user_password",
    "AvailabilityZone": "availability_zone",
    "Endpoint": "endpoint_address",
}

_DB_INSTANCE_INTS: dict[str, str] = {
    "AllocatedStorage": "allocated_storage",
    "MaxAllocatedStorage": "max_allocated_storage",
    "Iops": "iops",
    "Port": "port",
    "BackupRetentionPeriod": "backup_retention_period",
}


@dataclass
class DBInstance:
    """Desired (or observed) state of a DB instance."""

    db_instance_identifier: str | None = None
    db_instance_arn: str | None = None
    engine: str | None = None
    engine_version: str | None = None
    db_instance_class: str | None = None
    db_parameter_group_name: str | None = None
    db_subnet_group_name: str | None = None
    option_group_name: str | None = None
    storage_type: str | None = None
    allocated_storage: int | None = None
    max_allocated_storage: int | None = None
    iops: int | None = None
    port: int | None = None
    backup_retention_period: int | None = None
    multi_az: bool | None = None
    publicly_accessible: bool | None = None
    preferred_backup_window: str | None = None
    preferred_maintenance_window: str | None = None
    auto_minor_version_upgrade: bool | None = None
    allow_major_version_upgrade: bool | None = None
    ca_certificate_identifier: str | None = None
    deletion_protection: bool | None = None
    storage_encrypted: bool | None = None
    kms_key_id: str | None = None
    master_username: str | None = None
    master_user_password: str | None = None
    availability_zone: str | None = None
    endpoint_address: str | None = None
    vpc_security_groups: list[str] | None = None
    db_security_groups: list[str] | None = None
    associated_roles: list[DBInstanceRole] | None = None
    tags: list[Tag] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DBInstance:
        kwargs: dict[str, Any] = {}
        for wire, attr in _DB_INSTANCE_SCALARS.items():
            if wire in data:
                kwargs[attr] = data[wire]
        for wire, attr in _DB_INSTANCE_INTS.items():
            if wire in data:
                kwargs[attr] = _int_or_none(data[wire])
        if "VPCSecurityGroups" in data:
            kwargs["vpc_security_groups"] = list(data["VPCSecurityGroups"] or [])
        if "DBSecurityGroups" in data:
            kwargs["db_security_groups"] = list(data["DBSecurityGroups"] or [])
        if "AssociatedRoles" in data:
            kwargs["associated_roles"] = [
                DBInstanceRole.from_dict(r) for r in data["AssociatedRoles"] or []
            ]
        if "Tags" in data:
            kwargs["tags"] = [Tag.from_dict(t) for t in data["Tags"] or []]
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for wire, attr in {**_DB_INSTANCE_SCALARS, **_DB_INSTANCE_INTS}.items():
            value = getattr(self, attr)
            if value is not None:
                result[wire] = value
        if self.vpc_security_groups is not None:
            result["VPCSecurityGroups"] = list(self.vpc_security_groups)
        if self.db_security_groups is not None:
            result["DBSecurityGroups"] = list(self.db_security_groups)
        if self.associated_roles is not None:
            result["AssociatedRoles"] = [r.to_dict() for r in self.associated_roles]
        if self.tags is not None:
            result["Tags"] = [t.to_dict() for t in self.tags]
        return result


@dataclass(frozen=True)
class Parameter:
    """A DB parameter as returned by the describe calls."""

    name: str
    value: str | None = None
    is_modifiable: bool = True
    apply_method: str | None = None
    apply_type: str | None = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> Parameter:
        return cls(
            name=data["ParameterName"],
            value=data.get("ParameterValue"),
            is_modifiable=bool(data.get("IsModifiable", True)),
            apply_method=data.get("ApplyMethod"),
            apply_type=data.get("ApplyType"),
        )

    def to_api(self) -> dict[str, Any]:
        result: dict[str, Any] = {"ParameterName": self.name}
        if self.value is not None:
            result["ParameterValue"] = self.value
        if self.apply_method is not None:
            result["ApplyMethod"] = self.apply_method
        return result


@dataclass
class DBParameterGroup:
    """Desired state of a DB parameter group.

    ``parameters`` maps parameter names to the values the template declares;
    values are compared as strings against the service's.
    """

    db_parameter_group_name: str | None = None
    family: str | None = None
    description: str | None = None
    parameters: dict[str, Any] | None = None
    tags: list[Tag] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DBParameterGroup:
        return cls(
            db_parameter_group_name=data.get("DBParameterGroupName") or data.get("Id"),
            family=data.get("Family"),
            description=data.get("Description"),
            parameters=dict(data["Parameters"]) if data.get("Parameters") is not None else None,
            tags=[Tag.from_dict(t) for t in data["Tags"]] if data.get("Tags") is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.db_parameter_group_name is not None:
            result["DBParameterGroupName"] = self.db_parameter_group_name
        if self.family is not None:
            result["Family"] = self.family
        if self.description is not None:
            result["Description"] = self.description
        if self.parameters is not None:
            result["Parameters"] = dict(self.parameters)
        if self.tags is not None:
            result["Tags"] = [t.to_dict() for t in self.tags]
        return result


__all__ = [
    "DBInstance",
    "DBInstanceRole",
    "DBParameterGroup",
    "Parameter",
    "Tag",
]
