import json
from base64 import b64decode, b64encode
from collections.abc import Callable
from functools import wraps

from botocore.exceptions import ClientError

from myh_common.config import config, logger
from myh_common.exceptions import MYHInvalidRequestException
from myh_common.utils import load_records_into_schemas


def paginated_query(fn: Callable):
    """
    Decorator to handle converting API interface pagination to DynamoDB pagination.

    This will process incoming pagination fields for passing to DynamoDB, then take the raw DynamoDB response and
    transform it into a dict that includes an encoded lastKey field.

    {
        'items': <records, loaded through their schema>,
        'pagination': {
            'pageSize': <page size>,
            'prevLastKey': <encoded pagination key if available>,
            'lastKey': <encoded pagination key if available>
        }
    }

    When a FilterExpression is used, DynamoDB can return fewer items than the pageSize, so the query is repeated until
    the page is full or the results are exhausted.
    """

    @wraps(fn)
    def process_pagination_parameters(*args, pagination: dict | None = None, **kwargs):
        pagination = pagination or {}
        # We b64 encode/decode the lastKey just for convenience passing to/from the client over HTTP
        last_key = pagination.get('lastKey')
        if last_key is not None:
            try:
                last_key = json.loads(b64decode(last_key).decode('utf-8'))
            except Exception as e:
                raise MYHInvalidRequestException('Invalid lastKey') from e
        page_size = pagination.get('pageSize', config.default_page_size)

        items = []
        while True:
            dynamo_pagination = {'Limit': page_size - len(items)}
            if last_key is not None:
                dynamo_pagination['ExclusiveStartKey'] = last_key
            raw_resp = _caught_query(fn, *args, dynamo_pagination=dynamo_pagination, **kwargs)
            items.extend(raw_resp.get('Items', []))
            last_key = raw_resp.get('LastEvaluatedKey')
            if last_key is None or len(items) >= page_size:
                break

        if last_key is not None:
            last_key = b64encode(json.dumps(last_key).encode('utf-8')).decode('utf-8')
        return {
            # Deserializing everything that comes out of the database
            'items': load_records_into_schemas(items),
            'pagination': {'pageSize': page_size, 'prevLastKey': pagination.get('lastKey'), 'lastKey': last_key},
        }

    return process_pagination_parameters


def query_all(query: Callable, **kwargs) -> list[dict]:
    """
    Drain every page of a paginated query.

    :param query: A method wrapped with @paginated_query
    """
    items = []
    pagination = {}
    while True:
        resp = query(pagination=pagination, **kwargs)
        items.extend(resp['items'])
        last_key = resp['pagination']['lastKey']
        if last_key is None:
            return items
        pagination = {'lastKey': last_key}


def _caught_query(fn: Callable, *args, **kwargs):
    """Uniformly convert our DynamoDB query validation errors to invalid request exceptions"""
    try:
        return fn(*args, **kwargs)
    except ClientError as e:
        # If the client sends in an invalid lastKey that is good enough to get sent to DynamoDB,
        # DynamoDB will return us a ValidationException, so we'll handle that here
        if e.response['Error']['Code'] == 'ValidationException':
            logger.warning('Invalid request caused a ValidationException', response=e.response, exc_info=e)
            raise MYHInvalidRequestException('Invalid request') from e
        raise
