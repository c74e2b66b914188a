"""Tests for the resource-spine CLI."""

import json

import pytest
from botocore.exceptions import NoRegionError
from typer.testing import CliRunner

from resource_spine import __version__
from resource_spine.cli.app import app
from resource_spine.rds.db_instance import DBInstanceUpdateHandler
from resource_spine.rds.db_parameter_group import DBParameterGroupCreateHandler
from resource_spine.testing import StubProxyClient

runner = CliRunner()


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestRulesCommands:
    """``resource-spine rules``."""

    def test_show_one_set(self):
        result = runner.invoke(app, ["rules", "show", "--name", "default"])
        assert result.exit_code == 0
        assert "default" in result.output

    def test_show_unknown_set(self):
        result = runner.invoke(app, ["rules", "show", "--name", "nope"])
        assert result.exit_code == 1

    def test_classify_through_chain(self):
        result = runner.invoke(app, ["rules", "classify", "DBInstanceNotFound", "-r", "db-instance-modify"])
        assert result.exit_code == 0
        assert "FailWith(NotFound)" in result.output

    def test_classify_unknown_code_is_internal_error(self):
        result = runner.invoke(app, ["rules", "classify", "SomethingNew"])
        assert "FailWith(InternalError)" in result.output

    def test_classify_with_rules_file(self, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text(
            "apiVersion: resource-spine/v1\n"
            "kind: ErrorRuleSets\n"
            "ruleSets:\n"
            "  default:\n"
            "    fallback: default\n"
            "    rules:\n"
            "      - codes: [SomethingNew]\n"
            "        ignore: true\n"
        )
        result = runner.invoke(app, ["rules", "classify", "SomethingNew", "-f", str(rules)])
        assert result.exit_code == 0
        assert "Ignore()" in result.output

    def test_bad_rules_file(self, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text("ruleSets: [not, a, mapping]\n")
        result = runner.invoke(app, ["rules", "show", "-f", str(rules)])
        assert result.exit_code == 2


class TestInvokeCommands:
    """``resource-spine invoke`` with the AWS clients stubbed."""

    @pytest.fixture
    def stub_handler(self, monkeypatch):
        def install(handler_cls, rds, ec2=None):
            handler = handler_cls(rds, ec2)
            monkeypatch.setattr(handler_cls, "from_settings", classmethod(lambda cls, settings=None, sink=None: handler))
            return handler

        return install

    def _write(self, tmp_path, name, payload):
        path = tmp_path / name
        path.write_text(json.dumps(payload))
        return path

    def test_db_instance_update(self, tmp_path, stub_handler, rds, ec2):
        stub_handler(DBInstanceUpdateHandler, rds, ec2)
        request = self._write(
            tmp_path,
            "request.json",
            {
                "desiredResourceState": {"DBInstanceIdentifier": "db-1", "DBInstanceClass": "db.t3.small", "VPCSecurityGroups": ["sg-live"]},
                "previousResourceState": {"DBInstanceIdentifier": "db-1", "DBInstanceClass": "db.t3.micro", "VPCSecurityGroups": ["sg-live"]},
            },
        )
        result = runner.invoke(app, ["invoke", "db-instance-update", "--request", str(request), "--json"])
        assert result.exit_code == 0, result.output
        assert '"status": "SUCCESS"' in result.output
        assert rds.call_count("modify_db_instance") == 1

    def test_context_file_is_passed_back(self, tmp_path, stub_handler, rds, ec2):
        stub_handler(DBInstanceUpdateHandler, rds, ec2)
        request = self._write(
            tmp_path,
            "request.json",
            {"desiredResourceState": {"DBInstanceIdentifier": "db-1", "VPCSecurityGroups": ["sg-live"]}},
        )
        context = self._write(tmp_path, "context.json", {"flags": {"updated": True}})
        result = runner.invoke(
            app, ["invoke", "db-instance-update", "-r", str(request), "-c", str(context)]
        )
        assert result.exit_code == 0, result.output
        assert "SUCCESS" in result.output
        assert rds.call_count("modify_db_instance") == 0

    def test_failure_exits_non_zero(self, tmp_path, stub_handler):
        rds = StubProxyClient({"describe_engine_default_parameters": {"EngineDefaults": {"Parameters": []}}})
        stub_handler(DBParameterGroupCreateHandler, rds)
        request = self._write(
            tmp_path,
            "request.json",
            {"desiredResourceState": {"DBParameterGroupName": "g", "Family": "mysql8.0", "Parameters": {"bogus": 1}}},
        )
        result = runner.invoke(app, ["invoke", "db-parameter-group-create", "-r", str(request)])
        assert result.exit_code == 1
        assert "InvalidRequest" in result.output

    def test_missing_request_file(self, tmp_path):
        result = runner.invoke(app, ["invoke", "db-instance-update", "-r", str(tmp_path / "missing.json")])
        assert result.exit_code == 2

    def test_missing_request_file_checked_before_clients(self, tmp_path, monkeypatch):
        def fail(cls, settings=None, sink=None):
            raise AssertionError("clients built before the request was read")

        monkeypatch.setattr(DBInstanceUpdateHandler, "from_settings", classmethod(fail))
        result = runner.invoke(app, ["invoke", "db-instance-update", "-r", str(tmp_path / "missing.json")])
        assert result.exit_code == 2

    def test_client_construction_error_exits_2(self, tmp_path, monkeypatch):
        def no_region(cls, settings=None, sink=None):
            raise NoRegionError()

        monkeypatch.setattr(DBInstanceUpdateHandler, "from_settings", classmethod(no_region))
        request = self._write(tmp_path, "request.json", {"desiredResourceState": {"DBInstanceIdentifier": "db-1"}})
        result = runner.invoke(app, ["invoke", "db-instance-update", "-r", str(request)])
        assert result.exit_code == 2
