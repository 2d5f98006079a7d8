"""
Lambda function that sends drug expiry alerts.
Triggered on a schedule by an EventBridge rule.
"""
import json
from src.core import config
from src.core.exceptions import RepositoryException
from src.core.logger import get_logger, setup_logging
from src.services.alert_service import ExpiryAlertService, sweep_response

setup_logging(config.settings.log_level)
logger = get_logger(__name__)


def handler(event, context):
    """
    Lambda handler for the scheduled expiry alert sweep.

    Args:
        event: EventBridge scheduled event (content is not used)
        context: Lambda context object

    Returns:
        dict: Sweep summary with status code
    """
    alert_service = ExpiryAlertService()

    try:
        summary = alert_service.run_sweep()
        body = sweep_response(summary)
        logger.info("Scheduled expiry alert sweep finished: %s", body)

        return {
            'statusCode': 200,
            'body': json.dumps(body)
        }

    except RepositoryException as e:
        logger.error("Database error during expiry alert sweep: %s", e.message)
        return {
            'statusCode': 500,
            'body': json.dumps({
                'error': 'Database Error',
                'message': e.message
            })
        }

    except Exception as e:
        logger.exception("Unexpected error during expiry alert sweep")
        return {
            'statusCode': 500,
            'body': json.dumps({
                'error': 'Internal Server Error',
                'message': str(e)
            })
        }
