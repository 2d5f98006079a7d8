"""
Shared test fixtures and utilities.
"""
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock
from zoneinfo import ZoneInfo
import boto3
import jwt
import pytest
from moto import mock_aws
from src.core import parameter_store
from src.core.clock import Clock

DRUGS_TABLE = 'Drugs-test'
USERS_TABLE = 'Users-test'
SENDER_EMAIL = 'alerts@medicine-cabinet.test'


class FixedClock(Clock):
    """Clock frozen at a given instant; tests move it with ``advance``."""

    def __init__(self, instant: datetime):
        super().__init__('Europe/Warsaw')
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> None:
        self.instant = self.instant + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def no_parameter_store(monkeypatch):
    """Never reach SSM from tests; settings fall back to the dev JWT secret."""
    monkeypatch.setattr(parameter_store, 'get_parameter', Mock(side_effect=RuntimeError("SSM disabled in tests")))


@pytest.fixture
def fixed_clock():
    """Clock frozen at 2025-06-15 12:00 Warsaw time."""
    return FixedClock(datetime(2025, 6, 15, 12, 0, tzinfo=ZoneInfo('Europe/Warsaw')))


@pytest.fixture
def aws_env():
    """Point settings at moto-friendly credentials and test tables."""
    os.environ['AWS_ACCESS_KEY_ID'] = 'testing'
    os.environ['AWS_SECRET_ACCESS_KEY'] = 'testing'
    os.environ['AWS_SECURITY_TOKEN'] = 'testing'
    os.environ['AWS_SESSION_TOKEN'] = 'testing'
    os.environ['AWS_REGION'] = 'us-east-1'
    os.environ['DRUGS_TABLE_NAME'] = DRUGS_TABLE
    os.environ['USERS_TABLE_NAME'] = USERS_TABLE
    os.environ['SES_SENDER_EMAIL'] = SENDER_EMAIL
    os.environ['ENVIRONMENT'] = 'test'

    from src.core import config
    config.settings = config.Settings()

    # Clear dependency injection cache
    from src.core import dependencies
    for getter in [
        dependencies.get_clock,
        dependencies.get_cache,
        dependencies.get_drug_repository,
        dependencies.get_user_repository,
        dependencies.get_file_service,
        dependencies.get_auth_service,
        dependencies.get_drug_service,
        dependencies.get_alert_service
    ]:
        getter.cache_clear()

    yield

    for key in ['DRUGS_TABLE_NAME', 'USERS_TABLE_NAME', 'SES_SENDER_EMAIL', 'ENVIRONMENT']:
        if key in os.environ:
            del os.environ[key]


@pytest.fixture
def aws(aws_env):
    """Active moto mock with the drugs and users tables created."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')
        dynamodb.create_table(
            TableName=DRUGS_TABLE,
            KeySchema=[
                {'AttributeName': 'PK', 'KeyType': 'HASH'},
                {'AttributeName': 'SK', 'KeyType': 'RANGE'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'PK', 'AttributeType': 'S'},
                {'AttributeName': 'SK', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )
        dynamodb.create_table(
            TableName=USERS_TABLE,
            KeySchema=[{'AttributeName': 'username', 'KeyType': 'HASH'}],
            AttributeDefinitions=[{'AttributeName': 'username', 'AttributeType': 'S'}],
            BillingMode='PAY_PER_REQUEST'
        )
        yield dynamodb


@pytest.fixture
def auth_headers():
    """Generate valid JWT token and return authorization headers."""
    # Use same secret as the config fallback
    jwt_secret = "dev-secret-change-in-production"
    jwt_algorithm = "HS256"

    # Create token with 1 hour expiration
    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": "test_user",
        "exp": issued_at + timedelta(hours=1),
        "iat": issued_at
    }

    token = jwt.encode(payload, jwt_secret, algorithm=jwt_algorithm)

    return {"Authorization": f"Bearer {token}"}
