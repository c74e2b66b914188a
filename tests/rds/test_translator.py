"""Tests for RDS request builders and response translation."""

from resource_spine.rds import translator
from resource_spine.rds.models import DBInstance, DBInstanceRole, DBParameterGroup, Parameter, Tag


class TestModifyDBInstanceRequest:
    """Only changed properties are sent."""

    def test_unchanged_properties_omitted(self):
        previous = DBInstance(db_instance_identifier="db-1", db_instance_class="db.t3.micro", multi_az=False)
        desired = DBInstance(db_instance_identifier="db-1", db_instance_class="db.t3.micro", multi_az=True)
        request = translator.modify_db_instance_request(previous, desired)
        assert request == {"DBInstanceIdentifier": "db-1", "ApplyImmediately": True, "MultiAZ": True}

    def test_without_previous_sends_all_set_properties(self):
        desired = DBInstance(db_instance_identifier="db-1", allocated_storage=50, engine_version="8.0")
        request = translator.modify_db_instance_request(None, desired)
        assert request["AllocatedStorage"] == 50
        assert request["EngineVersion"] == "8.0"

    def test_rollback_never_shrinks_storage(self):
        previous = DBInstance(db_instance_identifier="db-1", allocated_storage=100)
        desired = DBInstance(db_instance_identifier="db-1", allocated_storage=50)
        assert "AllocatedStorage" not in translator.modify_db_instance_request(previous, desired, rollback=True)
        assert translator.modify_db_instance_request(previous, desired)["AllocatedStorage"] == 50

    def test_rollback_never_changes_engine_version(self):
        previous = DBInstance(db_instance_identifier="db-1", engine_version="8.0")
        desired = DBInstance(db_instance_identifier="db-1", engine_version="5.7")
        assert "EngineVersion" not in translator.modify_db_instance_request(previous, desired, rollback=True)

    def test_major_version_upgrade_flag(self):
        previous = DBInstance(db_instance_identifier="db-1", engine_version="5.7")
        desired = DBInstance(db_instance_identifier="db-1", engine_version="8.0", allow_major_version_upgrade=True)
        assert translator.modify_db_instance_request(previous, desired)["AllowMajorVersionUpgrade"] is True

    def test_major_version_flag_needs_version_change(self):
        previous = DBInstance(db_instance_identifier="db-1", engine_version="8.0")
        desired = DBInstance(db_instance_identifier="db-1", engine_version="8.0", allow_major_version_upgrade=True)
        assert "AllowMajorVersionUpgrade" not in translator.modify_db_instance_request(previous, desired)


class TestSmallBuilders:
    def test_role_requests(self):
        model = DBInstance(db_instance_identifier="db-1")
        role = DBInstanceRole("arn:role", "s3Import")
        assert translator.add_role_to_db_instance_request(model, role) == {
            "DBInstanceIdentifier": "db-1",
            "RoleArn": "arn:role",
            "FeatureName": "s3Import",
        }
        assert "FeatureName" not in translator.remove_role_from_db_instance_request(model, DBInstanceRole("arn:role"))

    def test_engine_versions_request(self):
        assert translator.describe_db_engine_versions_request("mysql8.0", None, None) == {
            "DBParameterGroupFamily": "mysql8.0"
        }

    def test_tag_requests_sorted(self):
        tags = {Tag("b", "2"), Tag("a", "1")}
        assert translator.add_tags_to_resource_request("arn", tags)["Tags"] == [
            {"Key": "a", "Value": "1"},
            {"Key": "b", "Value": "2"},
        ]
        assert translator.remove_tags_from_resource_request("arn", tags)["TagKeys"] == ["a", "b"]

    def test_tags_from_request(self):
        assert translator.translate_tags_from_request({"a": "1"}) == {Tag("a", "1")}
        assert translator.translate_tags_from_request(None) == set()

    def test_static_parameter_applies_on_reboot(self):
        static = Parameter("p", "1", apply_type="static")
        assert translator.build_parameter_with_new_value("2", static).apply_method == "pending-reboot"

    def test_create_parameter_group_without_tags(self):
        model = DBParameterGroup("g", "mysql8.0", None)
        assert translator.create_db_parameter_group_request(model, []) == {
            "DBParameterGroupName": "g",
            "DBParameterGroupFamily": "mysql8.0",
            "Description": "",
        }


class TestTranslateFromApi:
    def test_db_instance(self, instance):
        instance["AssociatedRoles"] = [{"RoleArn": "arn:role", "FeatureName": "s3Import", "Status": "ACTIVE"}]
        instance["TagList"] = [{"Key": "env", "Value": "prod"}]
        model = translator.translate_db_instance_from_api(instance)
        assert model.db_instance_identifier == "db-1"
        assert model.db_parameter_group_name == "default.mysql8.0"
        assert model.db_subnet_group_name == "default"
        assert model.port == 3306
        assert model.vpc_security_groups == ["sg-live"]
        assert model.associated_roles == [DBInstanceRole("arn:role", "s3Import")]
        assert model.tags == [Tag("env", "prod")]

    def test_parameter_group(self):
        model = translator.translate_db_parameter_group_from_api(
            {"DBParameterGroupName": "g", "DBParameterGroupFamily": "mysql8.0", "Description": "d"},
            {"a": 1},
        )
        assert model == DBParameterGroup("g", "mysql8.0", "d", {"a": 1})
