"""
User Repository for DynamoDB operations.
Handles CRUD operations for user accounts keyed by username.
"""
from datetime import datetime
from typing import Optional
import boto3
from botocore.exceptions import ClientError
from src.core import config
from src.core.exceptions import RepositoryException, UserAlreadyExistsException
from src.models.user_model import User


class UserRepository:
    """Repository for user account DynamoDB operations."""

    def __init__(self):
        self.dynamodb = boto3.resource('dynamodb', region_name=config.settings.aws_region)
        self.table = self.dynamodb.Table(config.settings.users_table_name)

    def create(self, user: User) -> None:
        """
        Create a new user record.

        Args:
            user: User domain model

        Raises:
            UserAlreadyExistsException: If the username is taken
            RepositoryException: If create operation fails
        """
        try:
            self.table.put_item(
                Item={
                    'username': user.username,
                    'email': user.email,
                    'password_hash': user.password_hash,
                    'alerts_enabled': user.alerts_enabled,
                    'created_at': user.created_at.isoformat()
                },
                ConditionExpression="attribute_not_exists(username)"
            )

        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException':
                raise UserAlreadyExistsException(f"Username '{user.username}' is already taken") from e
            raise RepositoryException(f"Failed to create user: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error creating user: {str(e)}") from e

    def get_by_username(self, username: str) -> Optional[User]:
        """
        Retrieve a user by username.

        Returns:
            User object or None if not found

        Raises:
            RepositoryException: If query fails
        """
        try:
            response = self.table.get_item(Key={'username': username})

            if 'Item' not in response:
                return None

            return self._item_to_user(response['Item'])

        except ClientError as e:
            raise RepositoryException(f"Failed to get user: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error getting user: {str(e)}") from e

    def update(self, username: str, updates: dict) -> None:
        """
        Update user fields.

        Args:
            username: Account identifier
            updates: Dictionary of fields to update

        Raises:
            RepositoryException: If update operation fails
        """
        try:
            update_expression = "SET "
            expression_values = {}
            expression_names = {}

            for key, value in updates.items():
                update_expression += f"#{key} = :{key}, "
                expression_values[f":{key}"] = value
                expression_names[f"#{key}"] = key

            update_expression = update_expression.rstrip(", ")

            self.table.update_item(
                Key={'username': username},
                UpdateExpression=update_expression,
                ExpressionAttributeNames=expression_names,
                ExpressionAttributeValues=expression_values
            )

        except ClientError as e:
            raise RepositoryException(f"Failed to update user: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error updating user: {str(e)}") from e

    def delete(self, username: str) -> None:
        try:
            self.table.delete_item(Key={'username': username})
        except ClientError as e:
            raise RepositoryException(f"Failed to delete user: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error deleting user: {str(e)}") from e

    def _item_to_user(self, item: dict) -> User:
        """Convert DynamoDB item to User domain model."""
        return User(
            username=item['username'],
            email=item.get('email', ''),
            password_hash=item['password_hash'],
            alerts_enabled=bool(item.get('alerts_enabled', True)),
            created_at=datetime.fromisoformat(item['created_at']) if item.get('created_at') else None
        )
