"""
DynamoDB Repository for drug data storage.
Handles CRUD, search and alert-state operations for drugs in DynamoDB.

Table layout: PK = OWNER#<owner_id>, SK = DRUG#<drug_id>. Timestamps are
stored as fixed-width UTC strings so range comparisons work lexicographically.
"""
import uuid
from collections import Counter
from datetime import datetime, timezone
from functools import reduce
from typing import Dict, Iterator, List, Optional
from zoneinfo import ZoneInfo
import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError
from src.core import config
from src.core.exceptions import DrugNotFoundException, RepositoryException
from src.core.logger import get_logger
from src.models.drug_model import Drug, DrugForm
from src.models.search_filter import Page, SearchFilter
from src.repositories.db_repository import DrugRepository

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def to_storage(value: datetime) -> str:
    """Serialize an aware datetime as a sortable UTC string."""
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def from_storage(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


class DynamoRepository(DrugRepository):
    """Repository for DynamoDB drug operations."""

    def __init__(self):
        self.dynamodb = boto3.resource('dynamodb', region_name=config.settings.aws_region)
        self.table = self.dynamodb.Table(config.settings.drugs_table_name)
        self.zone = ZoneInfo(config.settings.time_zone)

    def save(self, drug: Drug) -> Drug:
        """
        Save a new drug to DynamoDB.

        Args:
            drug: Drug domain model

        Returns:
            The saved drug with its id assigned

        Raises:
            RepositoryException: If save operation fails
        """
        try:
            if not drug.drug_id:
                drug.drug_id = str(uuid.uuid4())
            self.table.put_item(Item=self._drug_to_item(drug))
            return drug

        except ClientError as e:
            raise RepositoryException(f"Failed to save drug: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error saving drug: {str(e)}") from e

    def save_all(self, drugs: List[Drug]) -> None:
        """
        Save multiple drugs in batches.
        DynamoDB batch_writer automatically handles batching (25 items per batch).

        Raises:
            RepositoryException: If batch save fails
        """
        try:
            with self.table.batch_writer() as batch:
                for drug in drugs:
                    if not drug.drug_id:
                        drug.drug_id = str(uuid.uuid4())
                    batch.put_item(Item=self._drug_to_item(drug))
        except ClientError as e:
            raise RepositoryException(f"Failed to batch save drugs: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error during batch save: {str(e)}") from e

    def find_by_id(self, owner_id: str, drug_id: str) -> Drug:
        """
        Find a drug belonging to an owner.

        Raises:
            DrugNotFoundException: If the owner has no drug with that id
            RepositoryException: If the read fails
        """
        try:
            response = self.table.get_item(Key=self._key(owner_id, drug_id))
            if 'Item' not in response:
                raise DrugNotFoundException(f"Drug not found with ID: {drug_id}")
            return self._item_to_drug(response['Item'])

        except DrugNotFoundException:
            raise
        except ClientError as e:
            raise RepositoryException(f"Failed to get drug: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error getting drug: {str(e)}") from e

    def update_content(self, drug: Drug, reset_alert: bool) -> None:
        """
        Update user-editable fields in a single UpdateItem call.
        Alert fields are only touched when reset_alert is set.

        Raises:
            DrugNotFoundException: If the drug no longer exists
            RepositoryException: If update operation fails
        """
        updates = {
            'name': drug.name,
            'name_lower': drug.name.lower(),
            'drug_form': drug.form.name,
            'expiration_date': to_storage(drug.expiration_date),
        }
        removals = []
        if drug.description:
            updates['description'] = drug.description
        else:
            removals.append('description')
        if reset_alert:
            updates['alert_sent'] = False
            removals.append('alert_sent_at')

        update_expression = "SET " + ", ".join(f"#{key} = :{key}" for key in updates)
        if removals:
            update_expression += " REMOVE " + ", ".join(f"#{key}" for key in removals)

        expression_names = {f"#{key}": key for key in list(updates) + removals}
        expression_names['#PK'] = 'PK'
        expression_values = {f":{key}": value for key, value in updates.items()}

        try:
            self.table.update_item(
                Key=self._key(drug.owner_id, drug.drug_id),
                UpdateExpression=update_expression,
                ConditionExpression="attribute_exists(#PK)",
                ExpressionAttributeNames=expression_names,
                ExpressionAttributeValues=expression_values
            )
        except ClientError as e:
            if self._is_conditional_failure(e):
                raise DrugNotFoundException(f"Drug not found with ID: {drug.drug_id}") from e
            raise RepositoryException(f"Failed to update drug: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error updating drug: {str(e)}") from e

    def delete(self, owner_id: str, drug_id: str) -> None:
        try:
            self.table.delete_item(
                Key=self._key(owner_id, drug_id),
                ConditionExpression="attribute_exists(PK)"
            )
        except ClientError as e:
            if self._is_conditional_failure(e):
                raise DrugNotFoundException(f"Drug not found with ID: {drug_id}") from e
            raise RepositoryException(f"Failed to delete drug: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error deleting drug: {str(e)}") from e

    def delete_all_by_owner(self, owner_id: str) -> int:
        try:
            keys = [
                {'PK': item['PK'], 'SK': item['SK']}
                for item in self._query_owner(owner_id, ProjectionExpression='PK, SK')
            ]
            with self.table.batch_writer() as batch:
                for key in keys:
                    batch.delete_item(Key=key)
            return len(keys)

        except RepositoryException:
            raise
        except ClientError as e:
            raise RepositoryException(f"Failed to delete drugs: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error deleting drugs: {str(e)}") from e

    def find_filtered(self, search_filter: SearchFilter) -> Page[Drug]:
        """
        Query an owner's partition with the filter pushed down to DynamoDB,
        then sort and slice in memory.

        Raises:
            RepositoryException: If query fails
        """
        conditions = []
        if search_filter.name_contains:
            conditions.append(Attr('name_lower').contains(search_filter.name_contains))
        if search_filter.form is not None:
            conditions.append(Attr('drug_form').eq(search_filter.form.name))
        if search_filter.expired is True:
            conditions.append(Attr('expiration_date').lt(to_storage(search_filter.now)))
        elif search_filter.expired is False:
            conditions.append(Attr('expiration_date').gte(to_storage(search_filter.now)))
        if search_filter.expiring_soon_until is not None:
            conditions.append(Attr('expiration_date').between(
                to_storage(search_filter.now), to_storage(search_filter.expiring_soon_until)
            ))
        if search_filter.expiration_until is not None:
            conditions.append(Attr('expiration_date').lte(to_storage(search_filter.expiration_until)))

        query_kwargs = {}
        if conditions:
            query_kwargs['FilterExpression'] = reduce(lambda left, right: left & right, conditions)

        drugs = [self._item_to_drug(item) for item in self._query_owner(search_filter.owner_id, **query_kwargs)]
        ordered = search_filter.apply_sort(drugs)
        start = search_filter.offset

        return Page(
            items=ordered[start:start + search_filter.size],
            total=len(ordered),
            page=search_filter.page,
            size=search_filter.size
        )

    def count_total(self, owner_id: str) -> int:
        return self._count_owner(owner_id)

    def count_expired(self, owner_id: str, now: datetime) -> int:
        return self._count_owner(owner_id, Attr('expiration_date').lt(to_storage(now)))

    def count_alerts_sent(self, owner_id: str) -> int:
        return self._count_owner(owner_id, Attr('alert_sent').eq(True))

    def count_grouped_by_form(self, owner_id: str) -> Dict[str, int]:
        counts = Counter(
            item['drug_form']
            for item in self._query_owner(owner_id, ProjectionExpression='drug_form')
            if item.get('drug_form')
        )
        return dict(counts)

    def find_due_for_alert(self, now: datetime, until: datetime, owner_id: Optional[str] = None) -> List[Drug]:
        """
        Find drugs not yet alerted whose expiration is within [now, until].
        Without owner_id the whole table is scanned.

        Raises:
            RepositoryException: If the read fails
        """
        due = Attr('alert_sent').eq(False) & Attr('expiration_date').between(to_storage(now), to_storage(until))

        if owner_id is not None:
            items = self._query_owner(owner_id, FilterExpression=due)
        else:
            items = self._scan(FilterExpression=due)
        return [self._item_to_drug(item) for item in items]

    def mark_alert_sent(self, drug: Drug, sent_at: datetime) -> bool:
        try:
            self.table.update_item(
                Key=self._key(drug.owner_id, drug.drug_id),
                UpdateExpression="SET alert_sent = :sent, alert_sent_at = :sent_at",
                ConditionExpression="attribute_exists(PK) AND expiration_date = :expected AND alert_sent = :not_sent",
                ExpressionAttributeValues={
                    ':sent': True,
                    ':sent_at': to_storage(sent_at),
                    ':expected': to_storage(drug.expiration_date),
                    ':not_sent': False
                }
            )
            drug.alert_sent = True
            drug.alert_sent_at = sent_at
            return True

        except ClientError as e:
            if self._is_conditional_failure(e):
                logger.info("Drug %s changed since selection, alert state left untouched", drug.drug_id)
                return False
            raise RepositoryException(f"Failed to mark alert sent: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error marking alert sent: {str(e)}") from e

    def _query_owner(self, owner_id: str, **kwargs) -> Iterator[dict]:
        """Yield every item of an owner's partition, following pagination."""
        query_kwargs = {'KeyConditionExpression': Key('PK').eq(self._create_pk(owner_id)), **kwargs}
        try:
            while True:
                response = self.table.query(**query_kwargs)
                yield from response.get('Items', [])
                if 'LastEvaluatedKey' not in response:
                    break
                query_kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
        except ClientError as e:
            raise RepositoryException(f"Failed to query drugs: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error querying drugs: {str(e)}") from e

    def _scan(self, **kwargs) -> Iterator[dict]:
        scan_kwargs = dict(kwargs)
        try:
            while True:
                response = self.table.scan(**scan_kwargs)
                yield from response.get('Items', [])
                if 'LastEvaluatedKey' not in response:
                    break
                scan_kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
        except ClientError as e:
            raise RepositoryException(f"Failed to scan drugs: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error scanning drugs: {str(e)}") from e

    def _count_owner(self, owner_id: str, filter_expression=None) -> int:
        query_kwargs = {
            'KeyConditionExpression': Key('PK').eq(self._create_pk(owner_id)),
            'Select': 'COUNT'
        }
        if filter_expression is not None:
            query_kwargs['FilterExpression'] = filter_expression

        total = 0
        try:
            while True:
                response = self.table.query(**query_kwargs)
                total += response.get('Count', 0)
                if 'LastEvaluatedKey' not in response:
                    return total
                query_kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
        except ClientError as e:
            raise RepositoryException(f"Failed to count drugs: {str(e)}") from e
        except Exception as e:
            raise RepositoryException(f"Unexpected error counting drugs: {str(e)}") from e

    @staticmethod
    def _is_conditional_failure(error: ClientError) -> bool:
        return error.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException'

    def _create_pk(self, owner_id: str) -> str:
        """Create partition key for an owner."""
        return f"OWNER#{owner_id}"

    def _create_sk(self, drug_id: str) -> str:
        """Create sort key for a drug."""
        return f"DRUG#{drug_id}"

    def _key(self, owner_id: str, drug_id: str) -> dict:
        return {'PK': self._create_pk(owner_id), 'SK': self._create_sk(drug_id)}

    def _drug_to_item(self, drug: Drug) -> dict:
        item = {
            **self._key(drug.owner_id, drug.drug_id),
            'drug_id': drug.drug_id,
            'owner_id': drug.owner_id,
            'name': drug.name,
            'name_lower': drug.name.lower(),
            'drug_form': drug.form.name,
            'expiration_date': to_storage(drug.expiration_date),
            'alert_sent': drug.alert_sent,
            'created_at': to_storage(drug.created_at)
        }
        if drug.description:
            item['description'] = drug.description
        if drug.alert_sent_at is not None:
            item['alert_sent_at'] = to_storage(drug.alert_sent_at)
        return item

    def _item_to_drug(self, item: dict) -> Drug:
        """Convert DynamoDB item to Drug domain model."""
        alert_sent_at = item.get('alert_sent_at')
        return Drug(
            drug_id=item['drug_id'],
            owner_id=item['owner_id'],
            name=item['name'],
            form=DrugForm[item['drug_form']],
            expiration_date=from_storage(item['expiration_date']).astimezone(self.zone),
            description=item.get('description'),
            alert_sent=bool(item.get('alert_sent', False)),
            alert_sent_at=from_storage(alert_sent_at).astimezone(self.zone) if alert_sent_at else None,
            created_at=from_storage(item['created_at']) if item.get('created_at') else None
        )
