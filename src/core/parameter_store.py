"""
AWS Systems Manager Parameter Store helper.
Secrets such as the JWT signing key are read once per process and cached.
"""
import boto3
from functools import lru_cache


@lru_cache(maxsize=10)
def get_parameter(parameter_name: str, region: str = "us-east-1") -> str:
    """
    Fetch a decrypted parameter value.

    Args:
        parameter_name: Full parameter name (e.g., /medicine-cabinet-api/dev/jwt-secret)
        region: AWS region

    Returns:
        Parameter value (decrypted if SecureString)
    """
    ssm = boto3.client('ssm', region_name=region)
    response = ssm.get_parameter(Name=parameter_name, WithDecryption=True)
    return response['Parameter']['Value']
