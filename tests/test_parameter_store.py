"""
Tests for the Parameter Store helper and the JWT secret lookup.
"""
import boto3
from moto import mock_aws
from src.core import config
from src.core.parameter_store import get_parameter


class TestParameterStore:

    @mock_aws
    def test_get_parameter_decrypts(self, aws_env):
        ssm = boto3.client('ssm', region_name='us-east-1')
        ssm.put_parameter(Name='/medicine-cabinet-api/test/jwt-secret', Value='from-ssm', Type='SecureString')
        get_parameter.cache_clear()

        assert get_parameter('/medicine-cabinet-api/test/jwt-secret', 'us-east-1') == 'from-ssm'
        get_parameter.cache_clear()

    def test_jwt_secret_falls_back_without_parameter(self, aws_env, monkeypatch):
        monkeypatch.delenv('JWT_SECRET', raising=False)
        assert config.settings.jwt_secret == "dev-secret-change-in-production"
